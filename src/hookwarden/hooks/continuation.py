"""
Continuation engine - bounded multi-turn iteration per session.

At every turn boundary the runtime dispatches a Stop/SubagentStop event
and hands the resulting Decision to advance(), which answers one
question: should the agent run another iteration?

States per session:

    Idle --start--> Running --advance--> Running | Completed | Halted

Completed and Halted are terminal; advancing them is a no-op. A session
halts when its iteration budget is exhausted, when a terminal decision
is a Block, or (optionally) when the same hook outcome repeats too many
times in a row.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import hashlib as _hashlib
import json as _json
import logging as _logging
import threading as _threading

import hookwarden.constants as constants
import hookwarden.errors as errors
import hookwarden.hooks.results as results

_logger = _logging.getLogger(__name__)


class ContinuationStatus(_enum.Enum):
    """Lifecycle status of a session's continuation loop."""

    IDLE = "idle"
    RUNNING = "running"
    HALTED = "halted"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in {ContinuationStatus.HALTED, ContinuationStatus.COMPLETED}


class HaltReason(_enum.Enum):
    """Why a continuation loop was halted."""

    BUDGET_EXHAUSTED = "budget_exhausted"
    """The session used all of its iterations."""

    VETOED = "vetoed"
    """A terminal decision was a Block."""

    STALLED = "stalled"
    """Terminal hook outcomes stopped changing."""

    @property
    def description(self) -> str:
        return {
            HaltReason.BUDGET_EXHAUSTED: "iteration budget exhausted",
            HaltReason.VETOED: "continuation vetoed by hook",
            HaltReason.STALLED: "no forward progress",
        }[self]


@_dataclasses.dataclass
class ContinuationState:
    """
    Per-session record of the continuation loop.

    Mutated only by ContinuationEngine; callers get copies.
    """

    session_id: str
    max_iterations: int
    iteration_count: int = 0
    status: ContinuationStatus = ContinuationStatus.IDLE
    last_decision: results.Decision | None = None
    halt_reason: HaltReason | None = None
    recent_outcomes: list[str] = _dataclasses.field(default_factory=list, repr=False)

    def copy(self) -> ContinuationState:
        return _dataclasses.replace(self, recent_outcomes=list(self.recent_outcomes))


@_dataclasses.dataclass(frozen=True)
class AdvanceOutcome:
    """
    Answer to "should I run another iteration?".

    Attributes:
        should_continue: Whether the runtime should re-invoke the agent
        status: Session status after this call
        iteration_count: Iterations granted so far
        halt_reason: Why the session halted (Halted only)
        error: Why the call was a no-op (unknown or terminal session)
    """

    should_continue: bool
    status: ContinuationStatus
    iteration_count: int = 0
    halt_reason: HaltReason | None = None
    error: str | None = None

    def describe(self) -> str:
        """Operator-facing summary."""
        if self.status is ContinuationStatus.HALTED and self.halt_reason is not None:
            return f"halted: {self.halt_reason.description} after {self.iteration_count} iterations"
        if self.status is ContinuationStatus.COMPLETED:
            return f"completed: task finished normally after {self.iteration_count} iterations"
        if self.should_continue:
            return f"continue: iteration {self.iteration_count}"
        return f"{self.status.value}: {self.error or 'no further iterations'}"


def _outcome_fingerprint(decision: results.Decision) -> str:
    """Create a hash of a decision's hook outcomes for comparison."""
    data = {
        "kind": decision.kind.value,
        "results": [
            [r.hook.display_name, r.exit_code, r.timed_out, r.stdout, r.stderr]
            for r in decision.results
        ],
    }
    json_str = _json.dumps(data, sort_keys=True)
    return _hashlib.sha256(json_str.encode()).hexdigest()[:16]


class ContinuationEngine:
    """
    Session-scoped state machine for the continuation loop.

    advance() is serialized per session; different sessions don't share
    any state and proceed independently.
    """

    def __init__(
        self,
        *,
        default_max_iterations: int = constants.DEFAULT_MAX_ITERATIONS,
        stall_threshold: int | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            default_max_iterations: Budget for sessions started without one.
            stall_threshold: Identical terminal outcomes in a row that halt
                             the loop. None disables stall detection.
        """
        if stall_threshold is not None and stall_threshold < 2:
            raise ValueError("stall_threshold must be at least 2")
        self._default_max_iterations = default_max_iterations
        self._stall_threshold = stall_threshold
        self._states: dict[str, ContinuationState] = {}
        self._session_locks: dict[str, _threading.Lock] = {}
        self._lock = _threading.Lock()

    def start_session(
        self,
        session_id: str,
        max_iterations: int | None = None,
    ) -> ContinuationState:
        """
        Begin an iterative task for a session.

        Replaces any previous state for the session.

        Args:
            session_id: Session identifier.
            max_iterations: Iteration budget (default: engine default).

        Returns:
            Copy of the new state (status Running, iteration_count 0).
        """
        budget = self._default_max_iterations if max_iterations is None else max_iterations
        if budget < 0:
            raise ValueError("max_iterations must not be negative")

        state = ContinuationState(session_id=session_id, max_iterations=budget)
        state.status = ContinuationStatus.RUNNING

        with self._lock:
            self._states[session_id] = state
            self._session_locks.setdefault(session_id, _threading.Lock())

        _logger.info("Continuation started for session %s (max %d iterations)", session_id, budget)
        return state.copy()

    def end_session(self, session_id: str) -> ContinuationState | None:
        """
        Forget a session's continuation state.

        Returns:
            Copy of the final state, or None if the session was unknown.
        """
        with self._lock:
            state = self._states.pop(session_id, None)
            self._session_locks.pop(session_id, None)
        return state.copy() if state is not None else None

    def get_state(self, session_id: str) -> ContinuationState | None:
        """Get a copy of a session's state, or None if unknown."""
        with self._lock:
            state = self._states.get(session_id)
            lock = self._session_locks.get(session_id)
        if state is None or lock is None:
            return None
        with lock:
            return state.copy()

    def advance(
        self,
        session_id: str,
        decision: results.Decision,
        *,
        completed: bool | None = None,
    ) -> AdvanceOutcome:
        """
        Consume a terminal-event decision and decide whether to continue.

        Args:
            session_id: Session the turn boundary belongs to.
            decision: Decision from dispatching the Stop/SubagentStop event.
            completed: Explicit completion signal. Defaults to the
                       decision's completion marker.

        Returns:
            AdvanceOutcome. Unknown or terminal sessions get a no-op
            outcome describing the current state; this never raises.
        """
        with self._lock:
            state = self._states.get(session_id)
            lock = self._session_locks.get(session_id)

        try:
            if state is None or lock is None:
                raise errors.StateError(f"Unknown continuation session '{session_id}'")
            with lock:
                with self._lock:
                    current = self._states.get(session_id)
                if current is not state:
                    raise errors.StateError(
                        f"Continuation session '{session_id}' was ended or restarted"
                    )
                return self._transition(state, decision, completed)
        except errors.StateError as e:
            _logger.debug("advance() is a no-op: %s", e)
            with self._lock:
                state = self._states.get(session_id)
            if state is None:
                return AdvanceOutcome(
                    should_continue=False,
                    status=ContinuationStatus.IDLE,
                    error=str(e),
                )
            return AdvanceOutcome(
                should_continue=False,
                status=state.status,
                iteration_count=state.iteration_count,
                halt_reason=state.halt_reason,
                error=str(e),
            )

    def _transition(
        self,
        state: ContinuationState,
        decision: results.Decision,
        completed: bool | None,
    ) -> AdvanceOutcome:
        """Apply one advance to a session. Caller holds the session lock."""
        if state.status is not ContinuationStatus.RUNNING:
            raise errors.StateError(
                f"Continuation session '{state.session_id}' is {state.status.value}"
            )

        if decision.dropped:
            # A replayed terminal event must not consume an iteration
            return AdvanceOutcome(
                should_continue=state.iteration_count < state.max_iterations,
                status=state.status,
                iteration_count=state.iteration_count,
            )

        state.last_decision = decision

        if decision.blocked:
            return self._halt(state, HaltReason.VETOED)

        if decision.completed if completed is None else completed:
            state.status = ContinuationStatus.COMPLETED
            _logger.info(
                "Continuation completed for session %s after %d iterations",
                state.session_id,
                state.iteration_count,
            )
            return AdvanceOutcome(
                should_continue=False,
                status=state.status,
                iteration_count=state.iteration_count,
            )

        if self._is_stalled(state, decision):
            return self._halt(state, HaltReason.STALLED)

        if state.iteration_count >= state.max_iterations:
            return self._halt(state, HaltReason.BUDGET_EXHAUSTED)

        state.iteration_count += 1
        _logger.debug(
            "Continuation for session %s: iteration %d/%d",
            state.session_id,
            state.iteration_count,
            state.max_iterations,
        )
        return AdvanceOutcome(
            should_continue=True,
            status=state.status,
            iteration_count=state.iteration_count,
        )

    def _halt(self, state: ContinuationState, reason: HaltReason) -> AdvanceOutcome:
        state.status = ContinuationStatus.HALTED
        state.halt_reason = reason
        _logger.info(
            "Continuation halted for session %s after %d iterations: %s",
            state.session_id,
            state.iteration_count,
            reason.description,
        )
        return AdvanceOutcome(
            should_continue=False,
            status=state.status,
            iteration_count=state.iteration_count,
            halt_reason=reason,
        )

    def _is_stalled(self, state: ContinuationState, decision: results.Decision) -> bool:
        """Check if the last N terminal outcomes are identical."""
        if self._stall_threshold is None:
            return False

        state.recent_outcomes.append(_outcome_fingerprint(decision))
        if len(state.recent_outcomes) > self._stall_threshold:
            state.recent_outcomes = state.recent_outcomes[-self._stall_threshold :]

        if len(state.recent_outcomes) < self._stall_threshold:
            return False
        return len(set(state.recent_outcomes)) == 1
