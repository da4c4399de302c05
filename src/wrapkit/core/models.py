"""
Core data models for wrapkit.

Configuration objects accepted by wrap(), per-call overlays and the stats
snapshot exposed on every wrapped client.
"""

from __future__ import annotations

import math
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wrapkit.core.errors import ConfigurationError


class Priority(str, Enum):
    """Queue priority levels, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank; lower is dispatched first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}


class RateLimitConfig(BaseModel):
    """Flat rate limit applied to a method path."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    requests_per_second: float | None = Field(default=None, gt=0)
    requests_per_minute: float | None = Field(default=None, gt=0)
    concurrency: int | None = Field(
        default=None, gt=0, description="Max in-flight calls per method path"
    )

    @property
    def requests_per_second_effective(self) -> float | None:
        """Normalized requests per second, None when unbounded."""
        if self.requests_per_second:
            return self.requests_per_second
        if self.requests_per_minute:
            return self.requests_per_minute / 60.0
        return None

    @property
    def tokens_per_ms(self) -> float | None:
        """Refill rate in tokens per millisecond, None when unbounded."""
        rps = self.requests_per_second_effective
        return rps / 1000.0 if rps is not None else None

    @property
    def burst(self) -> int:
        """Bucket capacity."""
        rps = self.requests_per_second_effective
        if rps is None:
            return 1
        return max(1, math.ceil(rps))


class PerMethodRateLimitConfig(BaseModel):
    """Rate limits keyed by exact method path with an optional default."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default: RateLimitConfig | None = None
    per_method: dict[str, RateLimitConfig] = Field(default_factory=dict)

    def for_method(self, method_path: str) -> RateLimitConfig | None:
        """Resolve the config for a method path."""
        return self.per_method.get(method_path, self.default)


class QueueConfig(BaseModel):
    """Configuration for the request queue."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    concurrency: int | None = Field(default=None, gt=0, description="Max running requests")
    timeout: float | None = Field(default=None, gt=0, description="Per-request timeout (ms)")
    max_size: int | None = Field(default=None, ge=0, description="Max queued requests")


class WrapHooks(BaseModel):
    """Global lifecycle hooks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    before: Callable[..., Any] | None = None
    after: Callable[..., Any] | None = None
    on_error: Callable[..., Any] | None = None


class WrapConfig(BaseModel):
    """Main configuration for wrap()."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    hooks: WrapHooks = Field(default_factory=WrapHooks)
    rate_limit: RateLimitConfig | PerMethodRateLimitConfig | None = None
    queue: QueueConfig | None = None
    allowlist: list[str] | None = Field(
        default=None, description="Allowed method globs, exclusive with blocklist"
    )
    blocklist: list[str] | None = Field(
        default=None, description="Blocked method globs, exclusive with allowlist"
    )

    @model_validator(mode="after")
    def check_access_lists(self) -> "WrapConfig":
        if self.allowlist is not None and self.blocklist is not None:
            raise ConfigurationError(
                "Cannot specify both allowlist and blocklist. Use one or the other."
            )
        return self

    @classmethod
    def from_yaml(cls, path: str | Path, hooks: WrapHooks | None = None) -> "WrapConfig":
        """Load a configuration from a YAML file.

        Hooks are code, so they are passed separately.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if hooks is not None:
            data["hooks"] = hooks
        return cls.model_validate(data)


class PerCallOptions(BaseModel):
    """Overlay applied to calls made through a with_options() view."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout: float | None = Field(default=None, gt=0, description="Timeout (ms)")
    priority: Priority | None = None
    skip_queue: bool = False


class WrapkitStats(BaseModel):
    """Read-only statistics snapshot."""

    model_config = ConfigDict(frozen=True)

    requests_per_minute: int = 0
    average_latency: float = 0.0
    error_rate: float = 0.0
    total_requests: int = 0
