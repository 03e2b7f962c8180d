"""Tests for hook events and the tool invocation payload."""

import datetime as _datetime
import json as _json

import pytest as _pytest

import hookwarden.hooks.events as events


class TestHookEvent:
    """Tests for HookEvent enum."""

    def test_wire_names(self) -> None:
        """Event values are the names used in config and payloads."""
        assert events.HookEvent.PRE_TOOL_USE.value == "PreToolUse"
        assert events.HookEvent.POST_TOOL_USE.value == "PostToolUse"
        assert events.HookEvent.STOP.value == "Stop"
        assert events.HookEvent.SUBAGENT_STOP.value == "SubagentStop"

    def test_only_pre_tool_use_can_block(self) -> None:
        """Only PreToolUse hooks can veto."""
        assert events.HookEvent.PRE_TOOL_USE.can_block is True
        assert events.HookEvent.POST_TOOL_USE.can_block is False
        assert events.HookEvent.STOP.can_block is False
        assert events.HookEvent.SUBAGENT_STOP.can_block is False

    def test_terminal_events(self) -> None:
        """Stop and SubagentStop mark turn boundaries."""
        assert events.HookEvent.STOP.is_terminal is True
        assert events.HookEvent.SUBAGENT_STOP.is_terminal is True
        assert events.HookEvent.PRE_TOOL_USE.is_terminal is False
        assert events.HookEvent.POST_TOOL_USE.is_terminal is False

    def test_parse_accepts_wire_and_member_names(self) -> None:
        """parse() accepts both spellings."""
        assert events.HookEvent.parse("PostToolUse") is events.HookEvent.POST_TOOL_USE
        assert events.HookEvent.parse("post_tool_use") is events.HookEvent.POST_TOOL_USE
        assert events.HookEvent.parse("SUBAGENT_STOP") is events.HookEvent.SUBAGENT_STOP

    def test_parse_unknown_raises(self) -> None:
        """Unknown event names are rejected with the list of known ones."""
        with _pytest.raises(ValueError, match="Unknown event type 'OnSave'"):
            events.HookEvent.parse("OnSave")


class TestToolInvocationEvent:
    """Tests for ToolInvocationEvent."""

    def test_create_stamps_utc_time(self) -> None:
        """create() fills in a timezone-aware timestamp."""
        event = events.ToolInvocationEvent.create(
            "PreToolUse",
            session_id="s1",
            sequence_number=1,
            tool_name="shell_exec",
        )
        assert event.timestamp.tzinfo is not None
        assert event.tool_input == {}

    def test_to_json_has_protocol_fields(self) -> None:
        """The stdin payload carries exactly the protocol fields."""
        event = events.ToolInvocationEvent.create(
            events.HookEvent.PRE_TOOL_USE,
            session_id="s1",
            sequence_number=7,
            tool_name="shell_exec",
            tool_input={"command": "ls -la"},
        )
        payload = _json.loads(event.to_json())
        assert set(payload) == {
            "event_type",
            "tool_name",
            "tool_input",
            "session_id",
            "sequence_number",
            "timestamp",
        }
        assert payload["event_type"] == "PreToolUse"
        assert payload["tool_input"] == {"command": "ls -la"}
        assert payload["sequence_number"] == 7

    def test_env_vars(self) -> None:
        """Basic fields are exported as HOOKWARDEN_* variables."""
        event = events.ToolInvocationEvent.create(
            "PostToolUse",
            session_id="s1",
            sequence_number=3,
            tool_name="write_file",
        )
        env = event.to_env_vars()
        assert env["HOOKWARDEN_EVENT"] == "PostToolUse"
        assert env["HOOKWARDEN_TOOL_NAME"] == "write_file"
        assert env["HOOKWARDEN_SESSION_ID"] == "s1"
        assert env["HOOKWARDEN_SEQUENCE_NUMBER"] == "3"

    def test_from_dict(self) -> None:
        """Events parse back from their payload."""
        data = {
            "event_type": "Stop",
            "session_id": "s1",
            "sequence_number": 4,
            "timestamp": "2026-01-02T03:04:05+00:00",
        }
        event = events.ToolInvocationEvent.from_dict(data)
        assert event.event_type is events.HookEvent.STOP
        assert event.tool_name == ""
        assert event.timestamp == _datetime.datetime(
            2026, 1, 2, 3, 4, 5, tzinfo=_datetime.timezone.utc
        )

    def test_from_dict_missing_field(self) -> None:
        """Missing required fields are reported by name."""
        with _pytest.raises(ValueError, match="sequence_number"):
            events.ToolInvocationEvent.from_dict({"event_type": "Stop", "session_id": "s1"})

    def test_completion_marker_only_on_terminal_events(self) -> None:
        """The completed marker counts only for Stop/SubagentStop."""
        stop = events.ToolInvocationEvent.create(
            "Stop", session_id="s1", sequence_number=1, tool_input={"completed": True}
        )
        pre = events.ToolInvocationEvent.create(
            "PreToolUse", session_id="s1", sequence_number=2, tool_input={"completed": True}
        )
        assert stop.completion_requested is True
        assert pre.completion_requested is False

    def test_events_are_immutable(self) -> None:
        """Events can't be reassigned after creation."""
        event = events.ToolInvocationEvent.create("Stop", session_id="s1", sequence_number=1)
        with _pytest.raises(AttributeError):
            event.sequence_number = 2  # type: ignore[misc]
