"""
Rate limiting and request queuing module.

Provides per-method token buckets and a bounded priority queue.
"""

from wrapkit.queue.rate_limiter import (
    AcquireResult,
    RateLimiter,
    TokenBucket,
)
from wrapkit.queue.request_queue import (
    QueuedRequest,
    RequestQueue,
    run_with_timeout,
)

__all__ = [
    "AcquireResult",
    "RateLimiter",
    "TokenBucket",
    "QueuedRequest",
    "RequestQueue",
    "run_with_timeout",
]
