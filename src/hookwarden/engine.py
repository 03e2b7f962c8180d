"""
Runtime-facing facade.

HookEngine wires the registry, dispatcher and continuation engine
together behind the four calls an agent runtime needs: dispatch(),
advance(), start_session() and end_session().
"""

from __future__ import annotations

import pathlib as _pathlib
import typing as _typing

import hookwarden.hooks.config as config
import hookwarden.hooks.continuation as continuation
import hookwarden.hooks.dispatcher as dispatcher
import hookwarden.hooks.events as events
import hookwarden.hooks.executors as executors
import hookwarden.hooks.recorder as recorder
import hookwarden.hooks.registry as registry
import hookwarden.hooks.results as results
import hookwarden.settings as settings_module


class HookEngine:
    """
    Hook dispatch plus per-session continuation.

    Example:
        engine = HookEngine.from_config(project_root)
        engine.start_session("abc123", max_iterations=5)
        decision = await engine.dispatch(pre_tool_event)
        decision.raise_if_blocked()
        ...
        decision, outcome = await engine.complete_turn(stop_event)
        if not outcome.should_continue:
            print(outcome.describe())
        await engine.end_session("abc123")
    """

    def __init__(
        self,
        hook_registry: registry.HookRegistry,
        *,
        settings: settings_module.HookwardenSettings | None = None,
        hook_factory: executors.HookFactory | None = None,
        result_recorder: recorder.HookResultRecorder | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            hook_registry: Loaded hook registrations.
            settings: Engine settings (default: from environment).
            hook_factory: Builds a Hook per registration (default: CommandHook).
            result_recorder: Hook result recorder (default: per settings.results_log).
        """
        self._settings = settings or settings_module.HookwardenSettings()
        self._recorder = result_recorder or recorder.HookResultRecorder(
            log_file=self._settings.results_log,
        )
        self._dispatcher = dispatcher.HookDispatcher(
            hook_registry,
            project_root=self._settings.resolved_project_root(),
            max_concurrency=self._settings.max_concurrency,
            result_recorder=self._recorder,
            hook_factory=hook_factory,
        )
        self._continuation = continuation.ContinuationEngine(
            default_max_iterations=self._settings.default_max_iterations,
            stall_threshold=self._settings.stall_threshold,
        )

    @classmethod
    def from_config(
        cls,
        project_root: _pathlib.Path | None = None,
        *,
        settings: settings_module.HookwardenSettings | None = None,
        extra_sources: _typing.Iterable[registry.HookSource] = (),
        **kwargs: _typing.Any,
    ) -> HookEngine:
        """
        Create an engine from the default config files.

        Loads global (~/.config/hookwarden/hooks.yaml) and project
        (.hookwarden/hooks.yaml) configuration, then any extra sources.

        Raises:
            ConfigError: If any source is invalid.
        """
        settings = settings or settings_module.HookwardenSettings()
        if project_root is not None:
            settings = settings.model_copy(update={"project_root": project_root})
        root = settings.resolved_project_root()

        sources: list[registry.HookSource] = list(
            config.default_sources(root, include_global=settings.load_global_config)
        )
        sources.extend(extra_sources)
        return cls.from_sources(sources, settings=settings, **kwargs)

    @classmethod
    def from_sources(
        cls,
        sources: _typing.Iterable[registry.HookSource],
        *,
        settings: settings_module.HookwardenSettings | None = None,
        **kwargs: _typing.Any,
    ) -> HookEngine:
        """
        Create an engine from explicit config sources.

        Raises:
            ConfigError: If any source is invalid.
        """
        settings = settings or settings_module.HookwardenSettings()
        hook_registry = registry.HookRegistry.load(
            sources,
            project_root=settings.resolved_project_root(),
            default_timeout_ms=settings.default_timeout_ms,
        )
        return cls(hook_registry, settings=settings, **kwargs)

    @property
    def settings(self) -> settings_module.HookwardenSettings:
        return self._settings

    @property
    def registry(self) -> registry.HookRegistry:
        return self._dispatcher.registry

    @property
    def dispatcher(self) -> dispatcher.HookDispatcher:
        return self._dispatcher

    @property
    def continuation(self) -> continuation.ContinuationEngine:
        return self._continuation

    @property
    def recorder(self) -> recorder.HookResultRecorder:
        return self._recorder

    async def dispatch(self, event: events.ToolInvocationEvent) -> results.Decision:
        """Run the hooks for an event and return the Decision."""
        return await self._dispatcher.dispatch(event)

    def advance(
        self,
        session_id: str,
        decision: results.Decision,
        *,
        completed: bool | None = None,
    ) -> continuation.AdvanceOutcome:
        """Decide whether a session should run another iteration."""
        return self._continuation.advance(session_id, decision, completed=completed)

    async def complete_turn(
        self,
        event: events.ToolInvocationEvent,
    ) -> tuple[results.Decision, continuation.AdvanceOutcome]:
        """
        Dispatch a terminal event and advance its session.

        Raises:
            ValueError: If the event is not Stop or SubagentStop.
        """
        if not event.event_type.is_terminal:
            raise ValueError(f"{event.event_type.value} is not a terminal event")
        decision = await self._dispatcher.dispatch(event)
        return decision, self._continuation.advance(event.session_id, decision)

    def start_session(
        self,
        session_id: str,
        max_iterations: int | None = None,
    ) -> continuation.ContinuationState:
        """Begin an iterative task for a session."""
        return self._continuation.start_session(session_id, max_iterations)

    async def end_session(self, session_id: str) -> continuation.ContinuationState | None:
        """
        Tear down a session.

        Cancels its in-flight hooks, forgets its sequence numbers, and
        drops its continuation state.

        Returns:
            The final continuation state, if the session had one.
        """
        await self._dispatcher.cancel_session(session_id)
        self._dispatcher.forget_session(session_id)
        return self._continuation.end_session(session_id)

    async def close(self) -> None:
        """Cancel all in-flight hooks and close the result log."""
        await self._dispatcher.shutdown()
        self._recorder.close()
