"""Tests for configuration models and settings."""

import pytest
from pydantic import ValidationError

from wrapkit import (
    ConfigurationError,
    PerCallOptions,
    PerMethodRateLimitConfig,
    Priority,
    QueueConfig,
    RateLimitConfig,
    WrapConfig,
    WrapHooks,
)
from wrapkit.core.config import WrapkitSettings, get_settings, reload_settings


class TestPriority:
    """Tests for Priority."""

    def test_rank_order(self):
        ranks = [p.rank for p in (Priority.CRITICAL, Priority.HIGH, Priority.NORMAL, Priority.LOW)]
        assert ranks == [0, 1, 2, 3]

    def test_from_string(self):
        assert Priority("high") is Priority.HIGH


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_defaults_are_unbounded(self):
        config = RateLimitConfig()
        assert config.requests_per_second_effective is None
        assert config.tokens_per_ms is None

    def test_requests_per_second_wins(self):
        config = RateLimitConfig(requests_per_second=5, requests_per_minute=600)
        assert config.requests_per_second_effective == 5

    def test_requests_per_minute_normalized(self):
        config = RateLimitConfig(requests_per_minute=120)
        assert config.requests_per_second_effective == 2
        assert config.tokens_per_ms == pytest.approx(0.002)
        assert config.burst == 2

    def test_burst_rounds_up(self):
        assert RateLimitConfig(requests_per_second=2.5).burst == 3
        assert RateLimitConfig(requests_per_second=0.1).burst == 1

    @pytest.mark.parametrize(
        "field, value",
        [
            ("requests_per_second", 0),
            ("requests_per_second", -1),
            ("requests_per_minute", 0),
            ("concurrency", 0),
        ],
    )
    def test_non_positive_rejected(self, field, value):
        with pytest.raises(ValidationError):
            RateLimitConfig(**{field: value})

    def test_is_frozen(self):
        config = RateLimitConfig(requests_per_second=1)
        with pytest.raises(ValidationError):
            config.requests_per_second = 2


class TestPerMethodRateLimitConfig:
    """Tests for PerMethodRateLimitConfig."""

    def test_for_method(self):
        config = PerMethodRateLimitConfig(
            default=RateLimitConfig(requests_per_second=10),
            per_method={"files.delete": RateLimitConfig(requests_per_second=1)},
        )

        assert config.for_method("files.delete").requests_per_second == 1
        assert config.for_method("models.list").requests_per_second == 10

    def test_exact_path_only(self):
        config = PerMethodRateLimitConfig(
            per_method={"files.*": RateLimitConfig(requests_per_second=1)},
        )
        assert config.for_method("files.delete") is None


class TestWrapConfig:
    """Tests for WrapConfig."""

    def test_defaults(self):
        config = WrapConfig()

        assert config.rate_limit is None
        assert config.queue is None
        assert config.allowlist is None
        assert config.blocklist is None
        assert config.hooks.before is None

    def test_flat_rate_limit_from_dict(self):
        config = WrapConfig.model_validate({"rate_limit": {"requests_per_minute": 60}})
        assert isinstance(config.rate_limit, RateLimitConfig)

    def test_per_method_rate_limit_from_dict(self):
        config = WrapConfig.model_validate(
            {
                "rate_limit": {
                    "default": {"requests_per_second": 5},
                    "per_method": {"chat.completions.create": {"concurrency": 2}},
                }
            }
        )

        assert isinstance(config.rate_limit, PerMethodRateLimitConfig)
        assert config.rate_limit.for_method("chat.completions.create").concurrency == 2

    def test_both_lists_rejected(self):
        with pytest.raises(ConfigurationError):
            WrapConfig(allowlist=["a"], blocklist=["b"])

    def test_queue_validation(self):
        with pytest.raises(ValidationError):
            QueueConfig(concurrency=0)
        with pytest.raises(ValidationError):
            QueueConfig(max_size=-1)
        assert QueueConfig(max_size=0).max_size == 0

    def test_hooks_must_be_callable(self):
        with pytest.raises(ValidationError):
            WrapHooks(before="not callable")

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "wrapkit.yaml"
        path.write_text(
            "rate_limit:\n"
            "  requests_per_second: 5\n"
            "  concurrency: 2\n"
            "queue:\n"
            "  concurrency: 4\n"
            "  timeout: 30000\n"
            "blocklist:\n"
            "  - files.delete\n"
            '  - "admin.**"\n'
        )

        config = WrapConfig.from_yaml(path)

        assert config.rate_limit.requests_per_second == 5
        assert config.rate_limit.concurrency == 2
        assert config.queue.timeout == 30000
        assert config.blocklist == ["files.delete", "admin.**"]

    def test_from_yaml_with_hooks(self, tmp_path):
        path = tmp_path / "wrapkit.yaml"
        path.write_text("allowlist:\n  - models.*\n")

        def after(method, result):
            return result

        config = WrapConfig.from_yaml(path, hooks=WrapHooks(after=after))

        assert config.hooks.after is after
        assert config.allowlist == ["models.*"]

    def test_from_yaml_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert WrapConfig.from_yaml(path) == WrapConfig()

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WrapConfig.from_yaml(tmp_path / "missing.yaml")


class TestPerCallOptions:
    """Tests for PerCallOptions."""

    def test_defaults(self):
        options = PerCallOptions()
        assert options.timeout is None
        assert options.priority is None
        assert options.skip_queue is False

    def test_priority_from_string(self):
        assert PerCallOptions(priority="critical").priority is Priority.CRITICAL

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            PerCallOptions(retries=2)


class TestSettings:
    """Tests for environment settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("WRAPKIT_LOG_LEVEL", raising=False)
        settings = WrapkitSettings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.default_priority is Priority.NORMAL
        assert settings.concurrency_retry_delay_ms == 50
        assert settings.stats_window_seconds == 60.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WRAPKIT_LOG_LEVEL", "debug")
        monkeypatch.setenv("WRAPKIT_DEFAULT_PRIORITY", "low")
        monkeypatch.setenv("WRAPKIT_CONCURRENCY_RETRY_DELAY_MS", "10")

        settings = WrapkitSettings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.default_priority is Priority.LOW
        assert settings.concurrency_retry_delay_ms == 10

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("WRAPKIT_LOG_LEVEL", "verbose")
        with pytest.raises(ValidationError):
            WrapkitSettings(_env_file=None)

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            WrapkitSettings(log_format="xml", _env_file=None)

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("WRAPKIT_STATS_WINDOW_SECONDS", "30")
        try:
            assert reload_settings().stats_window_seconds == 30
        finally:
            monkeypatch.delenv("WRAPKIT_STATS_WINDOW_SECONDS")
            reload_settings()
