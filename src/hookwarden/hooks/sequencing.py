"""Per-session sequence number tracking to reject replayed or reordered events."""

from __future__ import annotations

import hookwarden.errors as errors
import hookwarden.hooks.events as events


class SequenceTracker:
    """
    Remembers the last accepted sequence number for each session.

    An event is accepted only if its sequence number is strictly greater
    than the last one accepted for its session.
    """

    def __init__(self) -> None:
        self._last_accepted: dict[str, int] = {}

    def accept(self, event: events.ToolInvocationEvent) -> None:
        """
        Accept an event, advancing its session's sequence.

        Raises:
            SequenceError: If the event is a duplicate or out of order.
        """
        last = self._last_accepted.get(event.session_id)
        if last is not None and event.sequence_number <= last:
            raise errors.SequenceError(event.session_id, event.sequence_number, last)
        self._last_accepted[event.session_id] = event.sequence_number

    def last_accepted(self, session_id: str) -> int | None:
        return self._last_accepted.get(session_id)

    def forget(self, session_id: str) -> None:
        """Drop bookkeeping for an ended session."""
        self._last_accepted.pop(session_id, None)
