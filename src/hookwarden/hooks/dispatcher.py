"""
Hook dispatcher - central coordinator for hook execution.

The HookDispatcher takes one event at a time, resolves the hooks that
apply to it, runs them, and folds their results into a single Decision.

- PreToolUse hooks run sequentially in declaration order and stop at
  the first blocking hook that vetoes.
- PostToolUse, Stop and SubagentStop hooks run concurrently (bounded)
  and can never veto; their results come back in declaration order.

Failures inside hooks never raise out of dispatch(); they come back as
HookResults and Decisions.
"""

from __future__ import annotations

import asyncio as _asyncio
import logging as _logging
import pathlib as _pathlib
import time as _time
import typing as _typing

import hookwarden.constants as constants
import hookwarden.errors as errors
import hookwarden.hooks.config as config
import hookwarden.hooks.events as events
import hookwarden.hooks.executors as executors
import hookwarden.hooks.executors.python as python_executor
import hookwarden.hooks.matching as matching
import hookwarden.hooks.recorder as recorder
import hookwarden.hooks.registry as registry
import hookwarden.hooks.results as results
import hookwarden.hooks.sequencing as sequencing

_logger = _logging.getLogger(__name__)


class HookDispatcher:
    """
    Runs matching hooks for each event and returns a Decision.

    Dispatch for PreToolUse is awaited by the runtime before it performs
    the tool action. In-flight hooks of a session can be cancelled with
    cancel_session(); the interrupted dispatch then returns Allow.
    """

    def __init__(
        self,
        hook_registry: registry.HookRegistry,
        *,
        project_root: _pathlib.Path | None = None,
        max_concurrency: int = constants.DEFAULT_MAX_CONCURRENCY,
        result_recorder: recorder.HookResultRecorder | None = None,
        hook_factory: executors.HookFactory | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            hook_registry: Loaded hook registrations.
            project_root: Working directory for hook processes.
            max_concurrency: Cap on concurrently running post-action hooks.
            result_recorder: Where every HookResult is recorded.
            hook_factory: Builds a Hook for a registration (default: CommandHook).
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._registry = hook_registry
        self._matcher = matching.HookMatcher(hook_registry)
        self._project_root = project_root or _pathlib.Path.cwd()
        self._max_concurrency = max_concurrency
        self._recorder = result_recorder or recorder.HookResultRecorder()
        self._hook_factory = hook_factory
        self._hooks: dict[config.RegistrationKey, executors.Hook] = {}
        self._sequences = sequencing.SequenceTracker()
        self._inflight: dict[str, set[_asyncio.Future[results.Decision]]] = {}

    @property
    def registry(self) -> registry.HookRegistry:
        return self._registry

    @property
    def recorder(self) -> recorder.HookResultRecorder:
        return self._recorder

    async def dispatch(self, event: events.ToolInvocationEvent) -> results.Decision:
        """
        Dispatch an event to all matching hooks.

        Args:
            event: The event being dispatched.

        Returns:
            Block if a blocking PreToolUse hook vetoed, AllowWithSideEffects
            for post-action and terminal events that ran hooks, otherwise Allow.
        """
        try:
            self._sequences.accept(event)
        except errors.SequenceError as e:
            _logger.warning("Dropping event: %s", e)
            return results.Decision.allow(dropped=True)

        hooks = self._matcher.resolve(event)
        if not hooks:
            return results.Decision.allow(completed=event.completion_requested)

        work = _asyncio.ensure_future(self._execute(event, hooks))
        inflight = self._inflight.setdefault(event.session_id, set())
        inflight.add(work)
        try:
            await _asyncio.wait({work})
        except _asyncio.CancelledError:
            # Our caller was cancelled: take the hooks down with us
            work.cancel()
            await _asyncio.wait({work})
            raise
        finally:
            inflight.discard(work)
            if not inflight:
                self._inflight.pop(event.session_id, None)

        decision = results.Decision.allow(cancelled=True) if work.cancelled() else work.result()
        if decision.cancelled:
            _logger.warning(
                "Hooks for %s (session %s, event %d) cancelled by session teardown",
                event.event_type.value,
                event.session_id,
                event.sequence_number,
            )
        return decision

    async def cancel_session(self, session_id: str) -> None:
        """
        Cancel all in-flight hooks for a session.

        Hook processes are killed along with their process groups, and
        the interrupted dispatch() calls return Allow carrying every
        result recorded for them, cancelled ones included.
        """
        tasks = set(self._inflight.get(session_id, ()))
        if not tasks:
            return
        for task in tasks:
            task.cancel()
        await _asyncio.wait(tasks)

    async def shutdown(self) -> None:
        """Cancel in-flight hooks for every session."""
        for session_id in list(self._inflight):
            await self.cancel_session(session_id)

    def forget_session(self, session_id: str) -> None:
        """Drop sequence bookkeeping for an ended session."""
        self._sequences.forget(session_id)

    def has_inflight(self, session_id: str) -> bool:
        """Check whether a session has hooks running."""
        return bool(self._inflight.get(session_id))

    def get_hooks_for_event(self, event: events.ToolInvocationEvent) -> list[config.HookRegistration]:
        """Get the hooks an event would run (for inspection/debugging)."""
        return self._matcher.resolve(event)

    async def _execute(
        self,
        event: events.ToolInvocationEvent,
        hooks: list[config.HookRegistration],
    ) -> results.Decision:
        if event.event_type.can_block:
            return await self._run_sequential(event, hooks)
        return await self._run_concurrent(event, hooks)

    async def _run_sequential(
        self,
        event: events.ToolInvocationEvent,
        hooks: list[config.HookRegistration],
    ) -> results.Decision:
        """Run hooks one at a time; the first veto stops the pipeline."""
        collected: list[results.HookResult] = []

        for registration in hooks:
            started = _time.monotonic()
            try:
                result = await self._hook_for(registration).run(event)
            except _asyncio.CancelledError:
                # Hooks after this one never run
                result = _cancelled_result(registration, started)
                self._recorder.record(event, result)
                collected.append(result)
                return results.Decision.allow(collected, cancelled=True)

            self._recorder.record(event, result)
            collected.append(result)

            if result.vetoes:
                decision = results.Decision.block(result, collected)
                _logger.info(
                    "Hook %s vetoed %s on %s (session %s, event %d): %s",
                    registration.display_name,
                    event.event_type.value,
                    event.tool_name,
                    event.session_id,
                    event.sequence_number,
                    decision.reason,
                )
                return decision

            self._log_unsuccessful(event, result)

        return results.Decision.allow(collected)

    async def _run_concurrent(
        self,
        event: events.ToolInvocationEvent,
        hooks: list[config.HookRegistration],
    ) -> results.Decision:
        """Run hooks independently; collect every result in declaration order."""
        semaphore = _asyncio.Semaphore(min(self._max_concurrency, len(hooks)))

        async def run_one(registration: config.HookRegistration) -> results.HookResult:
            started = _time.monotonic()
            try:
                async with semaphore:
                    return await self._hook_for(registration).run(event)
            except _asyncio.CancelledError:
                return _cancelled_result(registration, started)

        tasks = [_asyncio.ensure_future(run_one(registration)) for registration in hooks]
        cancelled = False
        try:
            await _asyncio.wait(tasks)
        except _asyncio.CancelledError:
            cancelled = True
            for task in tasks:
                task.cancel()
            await _asyncio.wait(tasks)

        collected = [
            _cancelled_result(registration, _time.monotonic()) if task.cancelled() else task.result()
            for registration, task in zip(hooks, tasks)
        ]

        for result in collected:
            self._recorder.record(event, result)
            if result.cancelled:
                continue
            if result.hook.blocking and not result.succeeded:
                _logger.warning(
                    "Hook %s is marked blocking but %s events cannot be vetoed",
                    result.hook.display_name,
                    event.event_type.value,
                )
            self._log_unsuccessful(event, result)

        if cancelled:
            return results.Decision.allow(collected, cancelled=True)
        return results.Decision.with_side_effects(
            collected,
            completed=event.completion_requested,
        )

    def _log_unsuccessful(
        self,
        event: events.ToolInvocationEvent,
        result: results.HookResult,
    ) -> None:
        # Timeouts and spawn failures were already logged by the hook itself
        if result.succeeded or result.is_fault:
            return
        _logger.warning(
            "Hook %s exited %d on %s (session %s, event %d)",
            result.hook.display_name,
            result.exit_code,
            event.event_type.value,
            event.session_id,
            event.sequence_number,
        )

    def _hook_for(self, registration: config.HookRegistration) -> executors.Hook:
        """Get or create the Hook that runs a registration."""
        hook = self._hooks.get(registration.key)
        if hook is None:
            if self._hook_factory is not None:
                hook = self._hook_factory(registration)
            else:
                hook = executors.create_hook(registration, project_root=self._project_root)
            self._hooks[registration.key] = hook
        return hook


def _cancelled_result(
    registration: config.HookRegistration,
    started: float,
) -> results.HookResult:
    """Result for a hook interrupted by session teardown."""
    return results.HookResult(
        hook=registration,
        exit_code=constants.INDETERMINATE_EXIT_CODE,
        stderr="cancelled by session teardown",
        duration=_time.monotonic() - started,
        cancelled=True,
    )


def python_hook_factory(
    callables: _typing.Mapping[str, python_executor.HookCallable],
    *,
    project_root: _pathlib.Path | None = None,
) -> executors.HookFactory:
    """
    Build a hook factory that runs some registrations in-process.

    Registrations whose display name is a key of `callables` run that
    callable; everything else runs as an external command.

    Args:
        callables: Hook display name to Python callable.
        project_root: Project root for command hooks.
    """

    def factory(registration: config.HookRegistration) -> executors.Hook:
        func = callables.get(registration.display_name)
        if func is not None:
            return executors.PythonHook(registration, func, project_root=project_root)
        return executors.create_hook(registration, project_root=project_root)

    return factory
