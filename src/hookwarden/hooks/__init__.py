"""
Hook system for Hookwarden.

Hooks are external commands (or in-process callables) registered against
lifecycle events. The dispatcher runs the hooks that match each tool
invocation and returns a Decision; the continuation engine turns
terminal-event decisions into continue/halt answers.

Example usage:
    from hookwarden.hooks import HookDispatcher, HookRegistry, ToolInvocationEvent

    registry = HookRegistry.load([Path(".hookwarden/hooks.yaml")])
    dispatcher = HookDispatcher(registry)
    decision = await dispatcher.dispatch(
        ToolInvocationEvent.create(
            "PreToolUse",
            session_id="abc123",
            sequence_number=1,
            tool_name="shell_exec",
            tool_input={"command": "ls -la"},
        )
    )
    if decision.blocked:
        # A blocking hook vetoed the action
        ...
"""

from hookwarden.hooks.config import HookRegistration, HooksFile
from hookwarden.hooks.continuation import (
    AdvanceOutcome,
    ContinuationEngine,
    ContinuationState,
    ContinuationStatus,
    HaltReason,
)
from hookwarden.hooks.dispatcher import HookDispatcher
from hookwarden.hooks.events import HookEvent, ToolInvocationEvent
from hookwarden.hooks.matching import HookMatcher
from hookwarden.hooks.recorder import HookResultRecorder
from hookwarden.hooks.registry import HookRegistry
from hookwarden.hooks.results import Decision, DecisionKind, HookResult

__all__ = [
    "AdvanceOutcome",
    "ContinuationEngine",
    "ContinuationState",
    "ContinuationStatus",
    "Decision",
    "DecisionKind",
    "HaltReason",
    "HookDispatcher",
    "HookEvent",
    "HookMatcher",
    "HookRegistration",
    "HookRegistry",
    "HookResult",
    "HookResultRecorder",
    "HooksFile",
    "ToolInvocationEvent",
]
