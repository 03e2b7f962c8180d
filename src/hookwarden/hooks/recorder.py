"""
Hook result recorder for observability.

Every hook result passes through the recorder before the dispatcher
returns its decision. Results are kept in a bounded in-memory buffer
and, optionally, appended to a JSONL file (one object per line).
"""

from __future__ import annotations

import collections as _collections
import datetime as _datetime
import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import hookwarden.constants as constants
import hookwarden.hooks.events as events
import hookwarden.hooks.results as results

_logger = _logging.getLogger(__name__)


class HookResultRecorder:
    """
    Records hook results in memory and optionally to a JSONL file.

    Usage:
        recorder = HookResultRecorder(log_file="/tmp/hook-results.jsonl")
        recorder.record(event, result)
        recorder.close()
    """

    def __init__(
        self,
        *,
        log_file: _pathlib.Path | str | None = None,
        buffer_size: int = constants.RECORDER_BUFFER_SIZE,
    ) -> None:
        """
        Initialize the recorder.

        Args:
            log_file: JSONL file to append results to (None = memory only).
            buffer_size: Number of recent records kept in memory.
        """
        self._records: _collections.deque[dict[str, _typing.Any]] = _collections.deque(
            maxlen=buffer_size
        )
        self._record_count = 0
        self._write_errors = 0
        self._file: _typing.TextIO | None = None
        self._file_path: _pathlib.Path | None = None

        if log_file is not None:
            self._file_path = _pathlib.Path(log_file)
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self._file_path, "a", encoding="utf-8")  # noqa: SIM115

    @property
    def file_path(self) -> _pathlib.Path | None:
        return self._file_path

    @property
    def record_count(self) -> int:
        """Total number of results recorded (including ones evicted from memory)."""
        return self._record_count

    def record(
        self,
        event: events.ToolInvocationEvent,
        result: results.HookResult,
    ) -> None:
        """Record one hook result for an event."""
        self._record_count += 1
        entry = {
            "timestamp": _datetime.datetime.now(_datetime.timezone.utc).isoformat(),
            "record_number": self._record_count,
            "session_id": event.session_id,
            "sequence_number": event.sequence_number,
            "tool_name": event.tool_name,
            **result.to_dict(),
        }
        self._records.append(entry)

        if self._file is not None:
            try:
                self._file.write(_json.dumps(entry, default=str) + "\n")
                self._file.flush()  # Ensure immediate write for crash safety
            except OSError as e:
                self._write_errors += 1
                _logger.warning("Cannot write hook result to %s: %s", self._file_path, e)

    @property
    def write_errors(self) -> int:
        """Number of records that could not be written to the log file."""
        return self._write_errors

    def recent(self, session_id: str | None = None) -> list[dict[str, _typing.Any]]:
        """Get the buffered records, optionally for one session."""
        if session_id is None:
            return list(self._records)
        return [r for r in self._records if r["session_id"] == session_id]

    def close(self) -> None:
        """Close the log file, if any."""
        if self._file is not None:
            file, self._file = self._file, None
            try:
                file.close()
            except OSError as e:
                _logger.warning("Cannot flush hook results to %s: %s", self._file_path, e)

    def __enter__(self) -> HookResultRecorder:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
