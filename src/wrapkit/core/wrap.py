"""
wrap() - intercept every call made through an API client.

The wrapper walks the client lazily: attribute access returns either a
nested wrapper (carrying the dotted method path), an executor for callables,
or the plain value for primitives. Executors drive the pipeline:

    access control -> queue -> rate limiter -> before hooks -> call
    -> after / on_error hooks -> stats and events
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from dataclasses import replace
from typing import Any, Callable

import structlog

from wrapkit.access.glob import check_access
from wrapkit.core.config import get_settings
from wrapkit.core.errors import AccessDeniedError, QueueFullError
from wrapkit.core.hooks import (
    CallArgs,
    RetryHelper,
    run_after_hook,
    run_before_hook,
    run_error_hook,
)
from wrapkit.core.models import PerCallOptions, WrapConfig, WrapkitStats
from wrapkit.core.state import QueueControl, WrapperCore, WrapperState
from wrapkit.observability.events import EventType
from wrapkit.plugins.base import (
    Plugin,
    PluginContext,
    run_plugins_after,
    run_plugins_before,
    run_plugins_on_error,
)
from wrapkit.queue.request_queue import run_with_timeout
from wrapkit.utils.awaitables import resolve

logger = structlog.get_logger()

# Values returned as-is instead of being wrapped
_PASSTHROUGH_TYPES = (
    str, bytes, bytearray, int, float, complex, bool, type(None),
    list, tuple, set, frozenset, dict,
)


async def _execute(
    fn: Callable[..., Any],
    method_path: str,
    state: WrapperState,
    call_args: CallArgs,
) -> Any:
    """Run one call through rate limiting, hooks and plugins."""
    core = state.core
    hooks = core.config.hooks
    start = time.monotonic()
    acquired = False
    failed = False

    core.active += 1
    core.emitter.emit(EventType.EXECUTING, method_path, concurrent=core.active)

    def on_rate_limited(path: str, delay_ms: int) -> None:
        core.emitter.emit(EventType.RATE_LIMITED, path, retry_after=delay_ms)

    try:
        if core.rate_limiter is not None:
            await core.rate_limiter.acquire(method_path, on_rate_limited)
            acquired = True

        call_args = await run_before_hook(hooks, method_path, call_args)
        ctx = PluginContext(method_path, call_args.args, call_args.kwargs)
        executions = await run_plugins_before(state.plugins, ctx)

        try:
            result = await resolve(fn(*call_args.args, **call_args.kwargs))
        except Exception as error:
            core.emitter.emit(
                EventType.ERROR,
                method_path,
                error=error,
                will_retry=hooks.on_error is not None,
            )
            await run_plugins_on_error(executions, ctx, error)
            return await run_error_hook(
                hooks, method_path, error, RetryHelper(fn, method_path, call_args)
            )

        await run_plugins_after(executions, replace(ctx, result=result))
        return await run_after_hook(hooks, method_path, result)
    except BaseException:
        failed = True
        raise
    finally:
        core.active -= 1
        latency_ms = (time.monotonic() - start) * 1000.0
        core.stats.record(latency_ms, failed=failed)
        core.emitter.emit(EventType.COMPLETED, method_path, duration=latency_ms)
        if acquired:
            core.rate_limiter.release(method_path)


def _submit(
    fn: Callable[..., Any],
    method_path: str,
    state: WrapperState,
    call_args: CallArgs,
) -> asyncio.Future:
    """
    Apply the synchronous gates and schedule the call.

    Raises:
        AccessDeniedError: If the method path is blocked or not allowlisted
        QueueFullError: If the call would overflow the queue
    """
    core = state.core
    config = core.config

    access = check_access(method_path, config.allowlist, config.blocklist)
    if not access.is_allowed:
        logger.info("Access denied", method=method_path, reason=access.reason)
        raise AccessDeniedError(method_path, access.reason)

    options = state.options

    def execute() -> Any:
        return _execute(fn, method_path, state, call_args)

    queue = core.queue
    if queue is not None and not options.skip_queue:
        if queue.is_full():
            raise QueueFullError(method_path)
        core.emitter.emit(EventType.QUEUED, method_path, queue_size=queue.size + 1)
        return queue.enqueue(
            method_path,
            execute,
            priority=options.priority or get_settings().default_priority,
            timeout_ms=options.timeout,
        )

    return asyncio.get_running_loop().create_task(
        run_with_timeout(execute, method_path, options.timeout)
    )


def _make_executor(
    fn: Callable[..., Any],
    method_path: str,
    state: WrapperState,
) -> Callable[..., asyncio.Future]:
    def executor(*args: Any, **kwargs: Any) -> asyncio.Future:
        return _submit(fn, method_path, state, CallArgs(args, kwargs))

    functools.update_wrapper(executor, fn, updated=())
    return executor


class WrappedClient:
    """
    Transparent wrapper around a client object graph.

    Attribute access mirrors the wrapped object. Calling a method, or a
    callable object such as a list resource that also has methods, returns
    an awaitable future for its result. The names on, off, with_options, use,
    stats and queue belong to the wrapper and shadow client members with the
    same name.
    """

    __slots__ = ("_wk_target", "_wk_state", "_wk_root", "_wk_path")

    def __init__(self, target: Any, state: WrapperState, root: Any, path: str = ""):
        object.__setattr__(self, "_wk_target", target)
        object.__setattr__(self, "_wk_state", state)
        object.__setattr__(self, "_wk_root", root)
        object.__setattr__(self, "_wk_path", path)

    def __getattr__(self, name: str) -> Any:
        value = getattr(self._wk_target, name)
        if name.startswith("__") and name.endswith("__"):
            return value

        path = f"{self._wk_path}.{name}" if self._wk_path else name

        if inspect.isroutine(value):
            return _make_executor(value, path, self._wk_state)
        if isinstance(value, _PASSTHROUGH_TYPES):
            return value
        # Callable objects with members of their own stay proxies
        return WrappedClient(value, self._wk_state, self._wk_root, path)

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Future:
        target = self._wk_target
        if not callable(target):
            raise TypeError(f"'{type(target).__name__}' object is not callable")
        return _submit(target, self._wk_path, self._wk_state, CallArgs(args, kwargs))

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._wk_target, name, value)

    def __dir__(self) -> list[str]:
        return sorted(set(dir(self._wk_target)) | {"on", "off", "with_options", "use", "stats", "queue"})

    def __repr__(self) -> str:
        where = f" at {self._wk_path!r}" if self._wk_path else ""
        return f"<WrappedClient{where} of {self._wk_target!r}>"

    def on(self, event: EventType | str, handler: Callable[..., Any] | None = None) -> Any:
        """Subscribe to a pipeline event; usable as a decorator."""
        return self._wk_state.core.emitter.on(event, handler)

    def off(self, event: EventType | str, handler: Callable[..., Any]) -> None:
        """Unsubscribe a handler."""
        self._wk_state.core.emitter.off(event, handler)

    def with_options(
        self,
        options: PerCallOptions | dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> "WrappedClient":
        """
        Return a view whose calls use the given per-call options.

        Example:
            await client.with_options(priority="high", timeout=5000).chat.completions.create(...)
        """
        if isinstance(options, PerCallOptions):
            options = options.model_dump(exclude_unset=True)
        opts = PerCallOptions.model_validate({**(options or {}), **kwargs})
        state = self._wk_state.with_options(opts)
        return WrappedClient(self._wk_root, state, self._wk_root)

    def use(self, plugin: Plugin) -> "WrappedClient":
        """Return a view with plugin appended to the plugin chain."""
        if not isinstance(plugin, Plugin):
            raise TypeError(f"Expected a Plugin, got {type(plugin).__name__}")
        state = self._wk_state.with_plugin(plugin)
        return WrappedClient(self._wk_root, state, self._wk_root)

    @property
    def stats(self) -> WrapkitStats:
        """Snapshot of call statistics."""
        return self._wk_state.core.stats.snapshot()

    @property
    def queue(self) -> QueueControl:
        """Queue controls; inert when no queue is configured."""
        return self._wk_state.core.queue_control


def wrap(client: Any, config: WrapConfig | dict[str, Any] | None = None, **options: Any) -> WrappedClient:
    """
    Wrap an API client with hooks, rate limiting, queueing and access control.

    Args:
        client: Any object whose (nested) members are callables
        config: WrapConfig or an equivalent dict
        **options: WrapConfig fields, merged over config

    Raises:
        ConfigurationError: If both allowlist and blocklist are given

    Example:
        client = wrap(
            AsyncOpenAI(),
            rate_limit={"requests_per_minute": 500},
            queue={"concurrency": 4},
            allowlist=["chat.completions.create", "models.*"],
        )
        response = await client.chat.completions.create(model="gpt-4o", messages=[...])
    """
    if isinstance(config, WrapConfig):
        if options:
            config = WrapConfig.model_validate({**dict(config), **options})
    else:
        config = WrapConfig.model_validate({**(config or {}), **options})

    core = WrapperCore.create(config)
    logger.debug(
        "Wrapped client",
        client=type(client).__name__,
        rate_limited=core.rate_limiter is not None,
        queued=core.queue is not None,
    )
    return WrappedClient(client, WrapperState(core), client)
