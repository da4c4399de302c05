"""
Plugin system for wrapkit.

Plugins follow an onion model: before hooks run in registration order,
after/on_error hooks run in reverse order. The value a plugin's before hook
returns is handed back to the same plugin's after or on_error hook.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable

from wrapkit.utils.awaitables import resolve

PluginHook = Callable[["PluginContext"], Any]


@dataclass(frozen=True)
class PluginContext:
    """Call information passed to plugin hooks."""

    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    context: Any = None
    error: BaseException | None = None


class Plugin:
    """
    Base class for plugins.

    Subclasses set ``name`` and override any of before/after/on_error:

        class Timing(Plugin):
            name = "timing"

            def before(self, ctx):
                return time.monotonic()

            def after(self, ctx):
                print(ctx.method, time.monotonic() - ctx.context)
    """

    name: str = "plugin"
    before: PluginHook | None = None
    after: PluginHook | None = None
    on_error: PluginHook | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class FunctionPlugin(Plugin):
    """Plugin assembled from plain functions."""

    def __init__(
        self,
        name: str,
        before: PluginHook | None = None,
        after: PluginHook | None = None,
        on_error: PluginHook | None = None,
    ):
        self.name = name
        self.before = before
        self.after = after
        self.on_error = on_error


def define_plugin(
    name: str,
    before: PluginHook | None = None,
    after: PluginHook | None = None,
    on_error: PluginHook | None = None,
) -> Plugin:
    """
    Build a plugin from functions.

    Example:
        metrics = define_plugin(
            "metrics",
            before=lambda ctx: time.monotonic(),
            after=lambda ctx: print(ctx.method, time.monotonic() - ctx.context),
        )
    """
    return FunctionPlugin(name, before=before, after=after, on_error=on_error)


@dataclass(frozen=True)
class PluginExecution:
    """A plugin paired with the context its before hook returned."""

    plugin: Plugin
    context: Any = None


async def run_plugins_before(
    plugins: tuple[Plugin, ...] | list[Plugin],
    ctx: PluginContext,
) -> list[PluginExecution]:
    """Run before hooks in registration order."""
    executions: list[PluginExecution] = []
    for plugin in plugins:
        context = None
        if plugin.before is not None:
            context = await resolve(plugin.before(ctx))
        executions.append(PluginExecution(plugin, context))
    return executions


async def run_plugins_after(
    executions: list[PluginExecution],
    ctx: PluginContext,
) -> None:
    """Run after hooks in reverse registration order."""
    for execution in reversed(executions):
        if execution.plugin.after is not None:
            await resolve(execution.plugin.after(replace(ctx, context=execution.context)))


async def run_plugins_on_error(
    executions: list[PluginExecution],
    ctx: PluginContext,
    error: BaseException,
) -> None:
    """Run on_error hooks in reverse registration order."""
    for execution in reversed(executions):
        if execution.plugin.on_error is not None:
            await resolve(
                execution.plugin.on_error(
                    replace(ctx, context=execution.context, error=error)
                )
            )
