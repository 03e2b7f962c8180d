"""
Python hooks - run in-process callables.

Lets a runtime register hook logic without a separate executable. The
callable receives the event and returns an exit code (None means 0), or
a HookOutput when it wants to report captured text. Both plain and
async callables are supported; an exception counts as exit 1.
"""

from __future__ import annotations

import inspect as _inspect
import pathlib as _pathlib
import typing as _typing

import hookwarden.hooks.config as config
import hookwarden.hooks.events as events
import hookwarden.hooks.executors.base as base

HookCallableResult = _typing.Union[int, None, base.HookOutput]
HookCallable = _typing.Callable[
    [events.ToolInvocationEvent],
    _typing.Union[HookCallableResult, _typing.Awaitable[HookCallableResult]],
]


class PythonHook(base.Hook):
    """Hook backed by a Python callable."""

    def __init__(
        self,
        registration: config.HookRegistration,
        func: HookCallable,
        *,
        project_root: _pathlib.Path | None = None,
    ) -> None:
        super().__init__(registration, project_root=project_root)
        self._func = func

    @property
    def hook_type(self) -> str:
        return "python"

    async def _run_impl(self, event: events.ToolInvocationEvent) -> base.HookOutput:
        try:
            outcome = self._func(event)
            if _inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            return base.HookOutput(exit_code=1, stderr=f"{type(e).__name__}: {e}")

        if isinstance(outcome, base.HookOutput):
            return outcome
        return base.HookOutput(exit_code=int(outcome or 0))
