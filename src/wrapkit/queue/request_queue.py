"""
Priority queue for bounding concurrent requests.

Requests are dispatched by priority, then arrival order, whenever a running
slot is free and the queue is not paused.
"""

from __future__ import annotations

import asyncio
import heapq
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from wrapkit.core.errors import QueueClearedError, QueueFullError, RequestTimeoutError
from wrapkit.core.models import Priority, QueueConfig

logger = structlog.get_logger()


@dataclass(order=True)
class QueuedRequest:
    """A request waiting in the queue."""

    rank: int
    request_id: int
    priority: Priority = field(compare=False)
    method_path: str = field(compare=False)
    execute: Callable[[], Awaitable[Any]] = field(compare=False)
    future: asyncio.Future = field(compare=False)
    timeout_ms: float | None = field(default=None, compare=False)


async def run_with_timeout(
    execute: Callable[[], Awaitable[Any]],
    method_path: str,
    timeout_ms: float | None,
) -> Any:
    """
    Run execute(), failing with RequestTimeoutError after timeout_ms.

    The execution is cancelled when the timeout wins.
    """
    if not timeout_ms:
        return await execute()
    try:
        return await asyncio.wait_for(execute(), timeout_ms / 1000.0)
    except asyncio.TimeoutError:
        logger.warning("Request timed out", method=method_path, timeout_ms=timeout_ms)
        raise RequestTimeoutError(method_path, timeout_ms) from None


class RequestQueue:
    """
    Bounded, pausable priority queue.

    Example:
        queue = RequestQueue(QueueConfig(concurrency=2))

        future = queue.enqueue("chat.completions.create", lambda: call())
        result = await future
    """

    def __init__(self, config: QueueConfig | None = None):
        self.config = config or QueueConfig()
        self._queue: list[QueuedRequest] = []
        self._running = 0
        self._paused = False
        self._next_id = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def size(self) -> int:
        """Number of queued, not yet running, requests."""
        return len(self._queue)

    @property
    def running(self) -> int:
        """Number of running requests."""
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    def is_full(self) -> bool:
        return self.config.max_size is not None and len(self._queue) >= self.config.max_size

    def enqueue(
        self,
        method_path: str,
        execute: Callable[[], Awaitable[Any]],
        priority: Priority = Priority.NORMAL,
        timeout_ms: float | None = None,
    ) -> asyncio.Future:
        """
        Submit a request.

        Args:
            method_path: Method path, used for logging and errors
            execute: Zero-argument coroutine factory run when dispatched
            priority: Request priority
            timeout_ms: Timeout overriding the queue default

        Returns:
            Future that will contain the result

        Raises:
            QueueFullError: If the queue holds max_size requests
        """
        if self.is_full():
            logger.warning("Queue is full", method=method_path, size=len(self._queue))
            raise QueueFullError(method_path)

        loop = asyncio.get_running_loop()
        request = QueuedRequest(
            rank=priority.rank,
            request_id=self._next_id,
            priority=priority,
            method_path=method_path,
            execute=execute,
            future=loop.create_future(),
            timeout_ms=timeout_ms if timeout_ms is not None else self.config.timeout,
        )
        self._next_id += 1

        heapq.heappush(self._queue, request)
        self._drain()

        return request.future

    def pause(self) -> None:
        """Stop dispatching new requests."""
        self._paused = True

    def resume(self) -> None:
        """Resume dispatching."""
        self._paused = False
        self._drain()

    def clear(self) -> None:
        """Reject every queued request. Running requests are unaffected."""
        cleared, self._queue = self._queue, []
        for request in cleared:
            if not request.future.done():
                request.future.set_exception(QueueClearedError(request.method_path))
        if cleared:
            logger.info("Queue cleared", dropped=len(cleared))

    def _can_dispatch(self) -> bool:
        if self._paused or not self._queue:
            return False
        concurrency = self.config.concurrency
        return concurrency is None or self._running < concurrency

    def _drain(self) -> None:
        """Start queued requests while slots are free."""
        while self._can_dispatch():
            request = heapq.heappop(self._queue)
            if request.future.done():
                # Caller gave up while the request was waiting
                continue

            self._running += 1
            logger.debug(
                "Dispatching request",
                method=request.method_path,
                priority=request.priority.value,
                running=self._running,
            )
            task = asyncio.get_running_loop().create_task(self._run(request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, request: QueuedRequest) -> None:
        try:
            result = await run_with_timeout(
                request.execute, request.method_path, request.timeout_ms
            )
        except asyncio.CancelledError:
            if not request.future.done():
                request.future.cancel()
            raise
        except Exception as e:
            if not request.future.done():
                request.future.set_exception(e)
        else:
            if not request.future.done():
                request.future.set_result(result)
        finally:
            self._running -= 1
            self._drain()
