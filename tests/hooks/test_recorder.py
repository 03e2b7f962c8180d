"""Tests for HookResultRecorder."""

import json as _json
import pathlib as _pathlib

import pytest as _pytest

import hookwarden.hooks.config as config
import hookwarden.hooks.recorder as recorder
import hookwarden.hooks.results as results


def _result(exit_code: int = 0, **kwargs: object) -> results.HookResult:
    hook = config.HookRegistration(event_type="PostToolUse", command=["lint"], name="lint")
    return results.HookResult(hook=hook, exit_code=exit_code, **kwargs)  # type: ignore[arg-type]


class TestMemoryBuffer:
    """Tests for in-memory records."""

    def test_records_event_and_result_fields(self, make_event) -> None:
        result_recorder = recorder.HookResultRecorder()
        event = make_event("PostToolUse", tool_name="write_file", sequence_number=7)
        result_recorder.record(event, _result(1, stderr="E501"))

        (entry,) = result_recorder.recent()
        assert entry["session_id"] == "test-session"
        assert entry["sequence_number"] == 7
        assert entry["tool_name"] == "write_file"
        assert entry["hook"] == "lint"
        assert entry["exit_code"] == 1
        assert entry["stderr"] == "E501"
        assert entry["record_number"] == 1
        assert "timestamp" in entry

    def test_buffer_is_bounded(self, make_event) -> None:
        result_recorder = recorder.HookResultRecorder(buffer_size=2)
        for code in (0, 1, 2):
            result_recorder.record(make_event("PostToolUse"), _result(code))

        assert [r["exit_code"] for r in result_recorder.recent()] == [1, 2]
        assert result_recorder.record_count == 3

    def test_filter_by_session(self, make_event) -> None:
        result_recorder = recorder.HookResultRecorder()
        result_recorder.record(make_event(session_id="a"), _result())
        result_recorder.record(make_event(session_id="b"), _result())

        assert len(result_recorder.recent()) == 2
        assert [r["session_id"] for r in result_recorder.recent("b")] == ["b"]


class TestJsonlFile:
    """Tests for the JSONL log file."""

    def test_appends_one_line_per_result(self, tmp_path: _pathlib.Path, make_event) -> None:
        log_file = tmp_path / "logs" / "results.jsonl"
        with recorder.HookResultRecorder(log_file=log_file) as result_recorder:
            assert result_recorder.file_path == log_file
            result_recorder.record(make_event("PostToolUse"), _result(0))
            result_recorder.record(make_event("PostToolUse"), _result(-1, timed_out=True))

        lines = log_file.read_text().splitlines()
        assert len(lines) == 2
        second = _json.loads(lines[1])
        assert second["exit_code"] == -1
        assert second["timed_out"] is True

    def test_existing_file_is_appended(self, tmp_path: _pathlib.Path, make_event) -> None:
        log_file = tmp_path / "results.jsonl"
        log_file.write_text('{"old": true}\n')
        with recorder.HookResultRecorder(log_file=log_file) as result_recorder:
            result_recorder.record(make_event(), _result())

        assert len(log_file.read_text().splitlines()) == 2

    def test_memory_only_by_default(self) -> None:
        result_recorder = recorder.HookResultRecorder()
        assert result_recorder.file_path is None
        result_recorder.close()

    def test_write_failure_keeps_memory_record(self, make_event) -> None:
        """A full disk is logged, never raised; the in-memory record survives."""
        if not _pathlib.Path("/dev/full").exists():
            _pytest.skip("requires /dev/full")
        result_recorder = recorder.HookResultRecorder(log_file="/dev/full")
        result_recorder.record(make_event(), _result(0))
        result_recorder.record(make_event(), _result(1))
        result_recorder.close()

        assert [r["exit_code"] for r in result_recorder.recent()] == [0, 1]
        assert result_recorder.write_errors == 2
