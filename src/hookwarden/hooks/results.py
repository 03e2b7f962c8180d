"""
Hook results and dispatch decisions.

- HookResult: Outcome of running one hook against one event
- DecisionKind: Allow, Block, or AllowWithSideEffects
- Decision: The dispatcher's aggregate verdict for one event

Only exit codes and timeouts drive decisions. Captured stdout/stderr is
carried along for logs and feedback and is never parsed.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import typing as _typing

import hookwarden.constants as constants
import hookwarden.errors as errors

if _typing.TYPE_CHECKING:
    import hookwarden.hooks.config as config


def _truncate(text: str, limit: int = constants.BLOCK_REASON_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "... (truncated)"


@_dataclasses.dataclass(frozen=True)
class HookResult:
    """
    Outcome of running one hook process against one event.

    Attributes:
        hook: The registration that ran
        exit_code: Process exit code (127 for spawn failures, -1 for timeouts)
        stdout: Captured standard output
        stderr: Captured standard error (spawn errors are reported here)
        duration: Wall time in seconds
        timed_out: Whether the hook was killed for exceeding its timeout
        spawn_failed: Whether the executable could not be started
        cancelled: Whether the hook was terminated by session teardown
    """

    hook: config.HookRegistration
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    timed_out: bool = False
    spawn_failed: bool = False
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        """Whether the hook ran to completion and exited 0."""
        return self.exit_code == 0 and not (self.timed_out or self.cancelled)

    @property
    def is_fault(self) -> bool:
        """Whether this is an operational fault rather than a hook verdict."""
        return self.timed_out or self.spawn_failed

    @property
    def vetoes(self) -> bool:
        """
        Whether this result vetoes the action.

        Only blocking hooks veto. A nonzero exit or spawn failure vetoes;
        a timeout is indeterminate unless the hook asked for on_timeout=block.
        """
        if not self.hook.blocking or self.cancelled:
            return False
        if self.timed_out:
            return self.hook.on_timeout == "block"
        return self.exit_code != 0

    def summary(self) -> str:
        """Short description of what the hook reported."""
        if self.hook.message:
            return self.hook.message
        if self.timed_out:
            return f"timed out after {self.hook.timeout:g}s"
        output = self.stderr.strip() or self.stdout.strip()
        return _truncate(output) if output else f"exit {self.exit_code}"

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to JSON-serializable dict."""
        return {
            "hook": self.hook.display_name,
            "event_type": self.hook.event_type.value,
            "matcher": self.hook.matcher,
            "command": list(self.hook.command),
            "blocking": self.hook.blocking,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration": round(self.duration, 6),
            "timed_out": self.timed_out,
            "spawn_failed": self.spawn_failed,
            "cancelled": self.cancelled,
        }


class DecisionKind(_enum.Enum):
    """Aggregate verdict for one event."""

    ALLOW = "allow"
    """No blocking hook fired (or nothing ran)."""

    BLOCK = "block"
    """A blocking hook vetoed the action."""

    ALLOW_WITH_SIDE_EFFECTS = "allow_with_side_effects"
    """Post-action hooks ran; none can veto."""


@_dataclasses.dataclass(frozen=True)
class Decision:
    """
    The dispatcher's verdict for one event.

    Attributes:
        kind: Allow / Block / AllowWithSideEffects
        reason: Why the action was blocked (Block only)
        blocking_result: Result of the hook that vetoed (Block only)
        results: Every hook result for the event, in declaration order
        completed: The terminal event carried the task-completed marker
        dropped: The event was rejected as out of order or duplicate
        cancelled: Hooks were cancelled by session teardown
    """

    kind: DecisionKind
    reason: str | None = None
    blocking_result: HookResult | None = None
    results: tuple[HookResult, ...] = ()
    completed: bool = False
    dropped: bool = False
    cancelled: bool = False

    @classmethod
    def allow(
        cls,
        results: _typing.Iterable[HookResult] = (),
        *,
        completed: bool = False,
        dropped: bool = False,
        cancelled: bool = False,
    ) -> Decision:
        """Create an Allow decision."""
        return cls(
            kind=DecisionKind.ALLOW,
            results=tuple(results),
            completed=completed,
            dropped=dropped,
            cancelled=cancelled,
        )

    @classmethod
    def block(
        cls,
        blocking_result: HookResult,
        results: _typing.Iterable[HookResult] = (),
        *,
        reason: str | None = None,
    ) -> Decision:
        """Create a Block decision attributed to the vetoing hook."""
        return cls(
            kind=DecisionKind.BLOCK,
            reason=reason or blocking_result.summary(),
            blocking_result=blocking_result,
            results=tuple(results) or (blocking_result,),
        )

    @classmethod
    def with_side_effects(
        cls,
        results: _typing.Iterable[HookResult],
        *,
        completed: bool = False,
    ) -> Decision:
        """Create an AllowWithSideEffects decision."""
        return cls(
            kind=DecisionKind.ALLOW_WITH_SIDE_EFFECTS,
            results=tuple(results),
            completed=completed,
        )

    @property
    def blocked(self) -> bool:
        return self.kind is DecisionKind.BLOCK

    @property
    def allowed(self) -> bool:
        """Whether the runtime may proceed (Allow or AllowWithSideEffects)."""
        return not self.blocked

    @property
    def vetoed_by(self) -> str | None:
        """Name of the hook that blocked, if any."""
        if self.blocking_result is None:
            return None
        return self.blocking_result.hook.display_name

    @property
    def faults(self) -> tuple[HookResult, ...]:
        """Results that were timeouts or spawn failures."""
        return tuple(r for r in self.results if r.is_fault)

    @property
    def feedback(self) -> list[str]:
        """
        Output of hooks that exited nonzero, for showing to the agent.

        Advisory only; it never changes the decision.
        """
        messages: list[str] = []
        for result in self.results:
            if result.succeeded or result.cancelled:
                continue
            text = result.stderr.strip() or result.stdout.strip()
            if text:
                messages.append(f"[{result.hook.display_name}] {_truncate(text)}")
        return messages

    def describe(self) -> str:
        """Human-readable one-line summary."""
        if self.blocked:
            return f"hook {self.vetoed_by} vetoed this action: {self.reason}"
        if self.dropped:
            return "event dropped (out of order or duplicate); allowed"
        if self.cancelled:
            return "hooks cancelled by session teardown; allowed"
        ran = len(self.results)
        failed = sum(1 for r in self.results if not r.succeeded)
        text = f"allowed ({ran} hook{'s' if ran != 1 else ''} ran"
        if failed:
            text += f", {failed} reported failure"
        return text + ")"

    def raise_if_blocked(self) -> None:
        """
        Raise HookVetoError if this decision blocks the action.

        Raises:
            HookVetoError: With the vetoing hook's name and captured stderr.
        """
        if self.blocked and self.blocking_result is not None:
            raise errors.HookVetoError(
                self.blocking_result.hook.display_name,
                self.reason or "",
                self.blocking_result.stderr,
            )

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, _typing.Any] = {
            "decision": self.kind.value,
            "results": [r.to_dict() for r in self.results],
        }
        if self.reason is not None:
            result["reason"] = self.reason
        if self.vetoed_by is not None:
            result["vetoed_by"] = self.vetoed_by
        if self.completed:
            result["completed"] = True
        if self.dropped:
            result["dropped"] = True
        if self.cancelled:
            result["cancelled"] = True
        feedback = self.feedback
        if feedback:
            result["feedback"] = feedback
        return result
