"""Tests for the Session model."""

from datetime import datetime, timedelta, timezone

import pytest

from agentsupervisor.models.session import (
    Platform,
    Session,
    SessionStatus,
    from_epoch_ms,
    to_epoch_ms,
)


class TestSessionStatus:
    def test_terminal_states(self):
        assert SessionStatus.COMPLETED.is_terminal
        assert SessionStatus.CANCELLED.is_terminal
        assert SessionStatus.ERROR.is_terminal

    def test_active_is_not_terminal(self):
        assert not SessionStatus.ACTIVE.is_terminal


class TestSession:
    def test_create(self):
        session = Session(session_id="s1", context_id="ENG-1")
        assert session.status == SessionStatus.ACTIVE
        assert session.platform == Platform.GENERAL
        assert session.phase == "planning"
        assert session.tools_used == ()
        assert session.end_time is None
        assert session.duration is None

    def test_empty_session_id_raises(self):
        with pytest.raises(ValueError, match="must have a session_id"):
            Session(session_id="", context_id="ENG-1")

    def test_with_updates_is_a_copy(self):
        session = Session(session_id="s1", context_id="ENG-1")
        updated = session.with_updates(current_tool="searchLinearIssues")
        assert updated.current_tool == "searchLinearIssues"
        assert session.current_tool == ""

    def test_tools_used_deduplicated_and_sorted(self):
        session = Session(session_id="s1", context_id="ENG-1")
        updated = session.with_updates(tools_used={"readRelatedFiles", "createFile"})
        assert updated.tools_used == ("createFile", "readRelatedFiles")
        again = updated.with_updates(tools_used=[*updated.tools_used, "createFile"])
        assert again.tools_used == ("createFile", "readRelatedFiles")

    def test_finished_sets_end_time_and_clears_tool(self):
        session = Session(session_id="s1", context_id="ENG-1", current_tool="editCode")
        done = session.finished(SessionStatus.ERROR, "boom")
        assert done.status == SessionStatus.ERROR
        assert done.error == "boom"
        assert done.current_tool == ""
        assert done.end_time is not None
        assert done.duration >= 0

    def test_finished_requires_terminal_status(self):
        session = Session(session_id="s1", context_id="ENG-1")
        with pytest.raises(ValueError):
            session.finished(SessionStatus.ACTIVE)

    def test_terminal_status_cannot_be_reopened(self):
        done = Session(session_id="s1", context_id="ENG-1").finished(SessionStatus.COMPLETED)
        with pytest.raises(ValueError, match="already completed"):
            done.with_updates(status=SessionStatus.ACTIVE)
        with pytest.raises(ValueError):
            done.with_updates(status="cancelled")

    def test_same_terminal_status_is_allowed(self):
        done = Session(session_id="s1", context_id="ENG-1").finished(SessionStatus.CANCELLED)
        assert done.with_updates(status="cancelled").status == SessionStatus.CANCELLED

    def test_doc_roundtrip(self):
        start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        session = Session(
            session_id="s1",
            context_id="slack:C1:170.1",
            platform=Platform.SLACK,
            tools_used=("searchSlackMessages",),
            messages=[{"role": "user", "content": "hi"}],
            metadata={"channelId": "C1"},
            start_time=start,
        ).finished(SessionStatus.COMPLETED)
        doc = session.to_doc()
        assert doc["start_time"] == to_epoch_ms(start)
        assert doc["status"] == "completed"
        assert doc["duration"] == session.duration

        restored = Session.from_doc(doc)
        assert restored.session_id == "s1"
        assert restored.platform == Platform.SLACK
        assert restored.status == SessionStatus.COMPLETED
        assert restored.tools_used == ("searchSlackMessages",)
        assert restored.messages == [{"role": "user", "content": "hi"}]
        assert restored.start_time == start

    def test_from_doc_defaults(self):
        restored = Session.from_doc({"session_id": "s1"})
        assert restored.context_id == ""
        assert restored.status == SessionStatus.ACTIVE
        assert restored.end_time is None


class TestEpochMs:
    def test_none_passthrough(self):
        assert to_epoch_ms(None) is None
        assert from_epoch_ms(None) is None

    def test_millisecond_precision(self):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=250)
        assert from_epoch_ms(to_epoch_ms(value)) == value
