"""Core wrapping pipeline for wrapkit."""

from wrapkit.core.errors import (
    WrapkitError,
    ConfigurationError,
    AccessDeniedError,
    QueueFullError,
    QueueClearedError,
    RequestTimeoutError,
)
from wrapkit.core.models import (
    WrapConfig,
    WrapHooks,
    RateLimitConfig,
    PerMethodRateLimitConfig,
    QueueConfig,
    PerCallOptions,
    Priority,
    WrapkitStats,
)

__all__ = [
    "WrapkitError",
    "ConfigurationError",
    "AccessDeniedError",
    "QueueFullError",
    "QueueClearedError",
    "RequestTimeoutError",
    "WrapConfig",
    "WrapHooks",
    "RateLimitConfig",
    "PerMethodRateLimitConfig",
    "QueueConfig",
    "PerCallOptions",
    "Priority",
    "WrapkitStats",
]
