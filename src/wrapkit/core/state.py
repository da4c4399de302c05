"""
Wrapper state.

One WrapperCore is created per wrap() call and shared by every view derived
from it. Each view carries its own WrapperState with a plugin tuple and a
per-call overlay.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable

from wrapkit.core.config import get_settings
from wrapkit.core.models import PerCallOptions, WrapConfig, WrapkitStats
from wrapkit.observability.events import EventEmitter
from wrapkit.plugins.base import Plugin
from wrapkit.queue.rate_limiter import RateLimiter
from wrapkit.queue.request_queue import RequestQueue


class StatsRecorder:
    """
    Aggregates call outcomes.

    The latency mean is kept as a running sum and count; only completion
    timestamps inside the requests_per_minute window are retained.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._window = window_seconds
        self._clock = clock
        self._total = 0
        self._failed = 0
        self._latency_sum = 0.0
        self._recent: deque[float] = deque()

    def record(self, latency_ms: float, failed: bool = False) -> None:
        now = self._clock()
        self._total += 1
        if failed:
            self._failed += 1
        self._latency_sum += latency_ms
        self._recent.append(now)
        self._prune(now)

    def _prune(self, now: float) -> None:
        cutoff = now - self._window
        while self._recent and self._recent[0] <= cutoff:
            self._recent.popleft()

    def snapshot(self) -> WrapkitStats:
        self._prune(self._clock())
        if self._total == 0:
            return WrapkitStats()
        return WrapkitStats(
            requests_per_minute=len(self._recent),
            average_latency=self._latency_sum / self._total,
            error_rate=self._failed / self._total,
            total_requests=self._total,
        )


class QueueControl:
    """Queue facade exposed as ``client.queue``; inert without a queue."""

    def __init__(self, queue: RequestQueue | None):
        self._queue = queue

    @property
    def size(self) -> int:
        return self._queue.size if self._queue else 0

    @property
    def pending(self) -> int:
        return self._queue.running if self._queue else 0

    def pause(self) -> None:
        if self._queue:
            self._queue.pause()

    def resume(self) -> None:
        if self._queue:
            self._queue.resume()

    def clear(self) -> None:
        if self._queue:
            self._queue.clear()

    def __repr__(self) -> str:
        return f"QueueControl(size={self.size}, pending={self.pending})"


@dataclass
class WrapperCore:
    """Mutable state shared by all views of one wrapped client."""

    config: WrapConfig
    stats: StatsRecorder
    emitter: EventEmitter
    queue: RequestQueue | None
    rate_limiter: RateLimiter | None
    queue_control: QueueControl
    active: int = 0

    @classmethod
    def create(cls, config: WrapConfig) -> "WrapperCore":
        settings = get_settings()
        queue = RequestQueue(config.queue) if config.queue is not None else None
        rate_limiter = (
            RateLimiter(
                config.rate_limit,
                concurrency_retry_delay_ms=settings.concurrency_retry_delay_ms,
            )
            if config.rate_limit is not None
            else None
        )
        return cls(
            config=config,
            stats=StatsRecorder(window_seconds=settings.stats_window_seconds),
            emitter=EventEmitter(),
            queue=queue,
            rate_limiter=rate_limiter,
            queue_control=QueueControl(queue),
        )


@dataclass(frozen=True)
class WrapperState:
    """State of one view: shared core plus its own plugins and overlay."""

    core: WrapperCore
    plugins: tuple[Plugin, ...] = ()
    options: PerCallOptions = field(default_factory=PerCallOptions)

    def with_plugin(self, plugin: Plugin) -> "WrapperState":
        return replace(self, plugins=(*self.plugins, plugin))

    def with_options(self, options: PerCallOptions) -> "WrapperState":
        return replace(self, options=options)
