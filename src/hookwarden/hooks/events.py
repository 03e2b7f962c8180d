"""
Hook event types and the tool invocation event passed to hooks.

These define the inputs of the hook system:
- HookEvent: Enum of the lifecycle points that trigger hooks
- ToolInvocationEvent: One attempted or completed tool action (or turn
  boundary), serialized to JSON on each hook's standard input
"""

from __future__ import annotations

import dataclasses as _dataclasses
import datetime as _datetime
import enum as _enum
import json as _json
import typing as _typing

import hookwarden.constants as constants


class HookEvent(_enum.Enum):
    """
    Lifecycle events that can trigger hooks.

    Values are the wire names used in configuration and in the JSON
    payload written to hook processes.
    """

    PRE_TOOL_USE = "PreToolUse"
    """Before a tool is executed. Blocking hooks can veto the action."""

    POST_TOOL_USE = "PostToolUse"
    """After a tool completes. Hooks report and automate, never veto."""

    STOP = "Stop"
    """The agent finished its turn."""

    SUBAGENT_STOP = "SubagentStop"
    """A subagent finished its turn."""

    @property
    def can_block(self) -> bool:
        """Whether hooks for this event can veto the operation."""
        return self is HookEvent.PRE_TOOL_USE

    @property
    def is_terminal(self) -> bool:
        """Whether this event marks a turn boundary."""
        return self in {HookEvent.STOP, HookEvent.SUBAGENT_STOP}

    @property
    def default_blocking(self) -> bool:
        """Blocking default for registrations that don't say."""
        return self.can_block

    @classmethod
    def parse(cls, value: str | HookEvent) -> HookEvent:
        """
        Parse an event name.

        Accepts the wire name ("PreToolUse") or the enum member name
        ("PRE_TOOL_USE" / "pre_tool_use").

        Raises:
            ValueError: If the name is not a known event.
        """
        if isinstance(value, HookEvent):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            known = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown event type '{value}' (expected one of: {known})") from None


@_dataclasses.dataclass(frozen=True)
class ToolInvocationEvent:
    """
    One attempted or completed tool action, or a turn boundary.

    Created by the agent runtime, consumed once by the dispatcher and
    then discarded.

    Attributes:
        event_type: Which lifecycle point this is
        tool_name: Tool being invoked (empty for turn boundaries)
        tool_input: Opaque tool payload (e.g. command string, file path)
        session_id: Session the event belongs to
        sequence_number: Strictly increasing per session
        timestamp: When the runtime created the event
    """

    event_type: HookEvent
    tool_name: str
    tool_input: dict[str, _typing.Any]
    session_id: str
    sequence_number: int
    timestamp: _datetime.datetime

    @classmethod
    def create(
        cls,
        event_type: HookEvent | str,
        *,
        session_id: str,
        sequence_number: int,
        tool_name: str = "",
        tool_input: dict[str, _typing.Any] | None = None,
    ) -> ToolInvocationEvent:
        """Create an event stamped with the current UTC time."""
        return cls(
            event_type=HookEvent.parse(event_type),
            tool_name=tool_name,
            tool_input=dict(tool_input or {}),
            session_id=session_id,
            sequence_number=sequence_number,
            timestamp=_datetime.datetime.now(_datetime.timezone.utc),
        )

    @property
    def completion_requested(self) -> bool:
        """Whether a terminal event carries the task-completed marker."""
        return self.event_type.is_terminal and bool(
            self.tool_input.get(constants.COMPLETION_MARKER_KEY)
        )

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to the JSON-serializable payload hooks receive."""
        return {
            "event_type": self.event_type.value,
            "tool_name": self.tool_name,
            "tool_input": self.tool_input,
            "session_id": self.session_id,
            "sequence_number": self.sequence_number,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return _json.dumps(self.to_dict(), default=str)

    def to_env_vars(self) -> dict[str, str]:
        """
        Convert to environment variables for hook processes.

        Returns a dict of HOOKWARDEN_* environment variables. The full
        payload is always on stdin; these are for simple shell hooks.
        """
        prefix = constants.ENV_PREFIX
        return {
            f"{prefix}EVENT": self.event_type.value,
            f"{prefix}TOOL_NAME": self.tool_name,
            f"{prefix}SESSION_ID": self.session_id,
            f"{prefix}SEQUENCE_NUMBER": str(self.sequence_number),
        }

    @classmethod
    def from_dict(cls, data: dict[str, _typing.Any]) -> ToolInvocationEvent:
        """
        Parse an event from a JSON-parsed dict.

        Missing timestamps default to now.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        for key in ("event_type", "session_id", "sequence_number"):
            if key not in data:
                raise ValueError(f"Event is missing required field '{key}'")

        tool_input = data.get("tool_input") or {}
        if not isinstance(tool_input, dict):
            raise ValueError("Event field 'tool_input' must be an object")

        raw_timestamp = data.get("timestamp")
        if raw_timestamp:
            timestamp = _datetime.datetime.fromisoformat(str(raw_timestamp))
        else:
            timestamp = _datetime.datetime.now(_datetime.timezone.utc)

        return cls(
            event_type=HookEvent.parse(data["event_type"]),
            tool_name=str(data.get("tool_name") or ""),
            tool_input=tool_input,
            session_id=str(data["session_id"]),
            sequence_number=int(data["sequence_number"]),
            timestamp=timestamp,
        )
