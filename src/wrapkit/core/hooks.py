"""
Global lifecycle hooks.

before(method, args, kwargs) may return replacement arguments,
after(method, result) may return a replacement result, and
on_error(method, error, helpers) may return a fallback or raise.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, NamedTuple

import structlog

from wrapkit.core.models import WrapHooks
from wrapkit.utils.awaitables import resolve

logger = structlog.get_logger()


class CallArgs(NamedTuple):
    """Positional and keyword arguments of an intercepted call."""

    args: tuple[Any, ...]
    kwargs: dict[str, Any]


class RetryHelper:
    """
    Passed to on_error hooks.

    retry() calls the original method again with the same receiver and
    arguments. It skips the queue, the rate limiter and every hook.
    """

    def __init__(self, fn: Callable[..., Any], method: str, call_args: CallArgs):
        self._fn = fn
        self._method = method
        self._call_args = call_args
        self.attempts = 0

    async def retry(self, delay: float | None = None) -> Any:
        """
        Re-invoke the original method.

        Args:
            delay: Milliseconds to wait before calling again
        """
        self.attempts += 1
        logger.debug(
            "Retrying call from on_error hook",
            method=self._method,
            attempt=self.attempts,
            delay_ms=delay,
        )
        if delay:
            await asyncio.sleep(delay / 1000.0)
        return await resolve(self._fn(*self._call_args.args, **self._call_args.kwargs))


async def run_before_hook(hooks: WrapHooks, method: str, call_args: CallArgs) -> CallArgs:
    if hooks.before is None:
        return call_args
    replacement = await resolve(hooks.before(method, call_args.args, dict(call_args.kwargs)))
    if replacement is None:
        return call_args
    args, kwargs = replacement
    return CallArgs(tuple(args), dict(kwargs or {}))


async def run_after_hook(hooks: WrapHooks, method: str, result: Any) -> Any:
    if hooks.after is None:
        return result
    replacement = await resolve(hooks.after(method, result))
    return result if replacement is None else replacement


async def run_error_hook(
    hooks: WrapHooks,
    method: str,
    error: Exception,
    helpers: RetryHelper,
) -> Any:
    """Give on_error a chance to recover; re-raise the error without one."""
    if hooks.on_error is None:
        raise error
    return await resolve(hooks.on_error(method, error, helpers))
