"""
Error taxonomy for Hookwarden.

Only ConfigError escapes to callers (at load time). The remaining errors
are raised and caught inside the engine and turn into data: failing hook
results, Allow decisions, or no-op continuation outcomes.
"""

from __future__ import annotations


class HookwardenError(Exception):
    """Base class for all Hookwarden errors."""

    pass


class ConfigError(HookwardenError):
    """Raised when hook configuration is malformed or ambiguous."""

    def __init__(self, message: str, *, source: str | None = None, entry: int | None = None) -> None:
        self.source = source
        self.entry = entry
        location = ""
        if source is not None:
            location = f"{source}"
            if entry is not None:
                location += f" (entry {entry})"
            location += ": "
        super().__init__(f"{location}{message}")


class SpawnError(HookwardenError):
    """Raised when a hook executable cannot be started."""

    pass


class HookTimeoutError(HookwardenError):
    """Raised when a hook exceeds its deadline."""

    pass


class SequenceError(HookwardenError):
    """Raised when an event arrives out of order or is delivered twice."""

    def __init__(self, session_id: str, sequence_number: int, last_accepted: int) -> None:
        self.session_id = session_id
        self.sequence_number = sequence_number
        self.last_accepted = last_accepted
        super().__init__(
            f"Event {sequence_number} for session '{session_id}' is not after "
            f"last accepted event {last_accepted}"
        )


class StateError(HookwardenError):
    """Raised when a continuation session is unknown or already terminal."""

    pass


class HookVetoError(HookwardenError):
    """Raised by Decision.raise_if_blocked() when a hook vetoed an action."""

    def __init__(self, hook_name: str, reason: str, stderr: str = "") -> None:
        self.hook_name = hook_name
        self.reason = reason
        self.stderr = stderr
        super().__init__(f"hook {hook_name} vetoed this action: {reason}")
