"""
wrapkit - Wrap any API client with hooks, rate limiting, queueing and access control.

Every call made through a wrapped client passes through an access check,
an optional priority queue, an optional token-bucket rate limiter and a
before/after/error hook pipeline with plugins.
"""

__version__ = "0.1.0"

from wrapkit.core.wrap import wrap, WrappedClient
from wrapkit.core.hooks import CallArgs, RetryHelper
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
from wrapkit.core.errors import (
    WrapkitError,
    ConfigurationError,
    AccessDeniedError,
    QueueFullError,
    QueueClearedError,
    RequestTimeoutError,
)
from wrapkit.observability.events import Event, EventType
from wrapkit.plugins.base import Plugin, PluginContext, define_plugin

__all__ = [
    "wrap",
    "WrappedClient",
    "CallArgs",
    "RetryHelper",
    "WrapConfig",
    "WrapHooks",
    "RateLimitConfig",
    "PerMethodRateLimitConfig",
    "QueueConfig",
    "PerCallOptions",
    "Priority",
    "WrapkitStats",
    "WrapkitError",
    "ConfigurationError",
    "AccessDeniedError",
    "QueueFullError",
    "QueueClearedError",
    "RequestTimeoutError",
    "Event",
    "EventType",
    "Plugin",
    "PluginContext",
    "define_plugin",
]
