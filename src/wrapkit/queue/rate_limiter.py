"""
Token bucket rate limiting per method path.

Admission is decided per attempt; callers that are denied wait the reported
delay and try again.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable

import structlog

from wrapkit.core.config import get_settings
from wrapkit.core.models import PerMethodRateLimitConfig, RateLimitConfig

logger = structlog.get_logger()


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class AcquireResult:
    """Outcome of a single acquisition attempt."""

    admitted: bool
    delay_ms: int = 0


class TokenBucket:
    """Token bucket with lazy refill."""

    def __init__(self, tokens_per_ms: float, max_tokens: int, now_ms: float):
        """
        Initialize a full bucket.

        Args:
            tokens_per_ms: Tokens added per millisecond
            max_tokens: Maximum bucket capacity
            now_ms: Current clock reading in milliseconds
        """
        self.tokens_per_ms = tokens_per_ms
        self.max_tokens = max_tokens
        self.tokens: float = float(max_tokens)
        self.last_refill = now_ms

    def refill(self, now_ms: float) -> None:
        elapsed = max(0.0, now_ms - self.last_refill)
        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.tokens_per_ms)
        self.last_refill = now_ms

    def try_consume(self) -> bool:
        """Take one token if available."""
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False

    def get_wait_time(self) -> int:
        """Milliseconds until one token is available."""
        if self.tokens >= 1:
            return 0
        return math.ceil((1 - self.tokens) / self.tokens_per_ms)


class RateLimiter:
    """
    Rate limiter keyed by method path.

    Features:
    - Token bucket per method path, created on first use
    - Flat or per-method configuration with a default
    - Optional cap on in-flight calls per method path

    Example:
        limiter = RateLimiter(RateLimitConfig(requests_per_second=2))

        await limiter.acquire("chat.completions.create")
        try:
            ...
        finally:
            limiter.release("chat.completions.create")
    """

    def __init__(
        self,
        config: RateLimitConfig | PerMethodRateLimitConfig,
        clock: Callable[[], float] | None = None,
        concurrency_retry_delay_ms: int | None = None,
    ):
        self.config = config
        self._clock = clock or _monotonic_ms
        self._concurrency_retry_delay_ms = (
            concurrency_retry_delay_ms or get_settings().concurrency_retry_delay_ms
        )
        self._buckets: dict[str, TokenBucket] = {}
        self._in_flight: dict[str, int] = {}

    def config_for(self, method_path: str) -> RateLimitConfig | None:
        """Resolve the rate limit that applies to a method path."""
        if isinstance(self.config, PerMethodRateLimitConfig):
            return self.config.for_method(method_path)
        return self.config

    def get_bucket(self, method_path: str) -> TokenBucket | None:
        """Get or create the bucket for a method path; None when unbounded."""
        bucket = self._buckets.get(method_path)
        if bucket is not None:
            return bucket

        method_config = self.config_for(method_path)
        if method_config is None or method_config.tokens_per_ms is None:
            return None

        bucket = TokenBucket(method_config.tokens_per_ms, method_config.burst, self._clock())
        self._buckets[method_path] = bucket
        return bucket

    def in_flight(self, method_path: str) -> int:
        """Number of admitted calls for a path that have not settled."""
        return self._in_flight.get(method_path, 0)

    def try_acquire(self, method_path: str) -> AcquireResult:
        """
        Attempt to admit one call.

        Returns:
            AcquireResult; when not admitted, delay_ms says how long to wait
        """
        method_config = self.config_for(method_path)

        if method_config is not None and method_config.concurrency:
            if self.in_flight(method_path) >= method_config.concurrency:
                return AcquireResult(False, self._concurrency_retry_delay_ms)

        bucket = self.get_bucket(method_path)
        if bucket is not None:
            bucket.refill(self._clock())
            if not bucket.try_consume():
                return AcquireResult(False, bucket.get_wait_time())

        self._in_flight[method_path] = self.in_flight(method_path) + 1
        return AcquireResult(True, 0)

    async def acquire(
        self,
        method_path: str,
        on_rate_limited: Callable[[str, int], None] | None = None,
    ) -> None:
        """
        Wait until a call for method_path is admitted.

        Args:
            method_path: Method path being called
            on_rate_limited: Called with (method_path, delay_ms) on every denial
        """
        result = self.try_acquire(method_path)
        while not result.admitted:
            logger.debug(
                "Request rate limited",
                method=method_path,
                retry_after_ms=result.delay_ms,
            )
            if on_rate_limited is not None:
                on_rate_limited(method_path, result.delay_ms)
            await asyncio.sleep(result.delay_ms / 1000.0)
            result = self.try_acquire(method_path)

    def release(self, method_path: str) -> None:
        """Record that an admitted call has settled."""
        self._in_flight[method_path] = max(0, self.in_flight(method_path) - 1)
