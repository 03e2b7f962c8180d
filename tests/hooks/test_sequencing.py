"""Tests for SequenceTracker."""

import pytest as _pytest

import hookwarden.errors as errors
import hookwarden.hooks.sequencing as sequencing


class TestSequenceTracker:
    """Tests for per-session ordering."""

    def test_accepts_increasing_numbers(self, make_event) -> None:
        tracker = sequencing.SequenceTracker()
        tracker.accept(make_event(sequence_number=1))
        tracker.accept(make_event(sequence_number=4))
        assert tracker.last_accepted("test-session") == 4

    @_pytest.mark.parametrize("seq", [4, 2])
    def test_rejects_duplicate_and_older(self, make_event, seq: int) -> None:
        tracker = sequencing.SequenceTracker()
        tracker.accept(make_event(sequence_number=4))
        with _pytest.raises(errors.SequenceError) as exc_info:
            tracker.accept(make_event(sequence_number=seq))
        assert exc_info.value.last_accepted == 4
        assert tracker.last_accepted("test-session") == 4

    def test_sessions_tracked_separately(self, make_event) -> None:
        tracker = sequencing.SequenceTracker()
        tracker.accept(make_event(session_id="a", sequence_number=9))
        tracker.accept(make_event(session_id="b", sequence_number=1))
        assert tracker.last_accepted("a") == 9
        assert tracker.last_accepted("b") == 1

    def test_forget(self, make_event) -> None:
        tracker = sequencing.SequenceTracker()
        tracker.accept(make_event(sequence_number=9))
        tracker.forget("test-session")
        assert tracker.last_accepted("test-session") is None
        tracker.accept(make_event(sequence_number=1))
