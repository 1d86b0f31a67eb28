"""Tests for SessionManager."""

import pytest

from domscribe.capture.notifications import ClickNotification
from domscribe.config import Settings
from domscribe.errors import RecordingActiveError, SessionNotFoundError
from domscribe.export.engine import ExportOptions
from domscribe.recording.models import Session
from domscribe.storage.session_manager import SessionManager


@pytest.fixture
def manager(store, recorder, settings):
    return SessionManager(store, recorder, settings=settings)


def _record(recorder, page, url="https://example.com/contact", clicks=1):
    recorder.start(url, title="Contact", page=page)
    for _ in range(clicks):
        recorder.handle(ClickNotification(page.find("button")))
    return recorder.stop()


class TestQueries:
    """Tests for listing and reading sessions."""

    def test_list_sessions(self, manager, recorder, page):
        session = _record(recorder, page)

        assert [s.id for s in manager.list_sessions()] == [session.id]

    def test_get_session(self, manager, recorder, page):
        session = _record(recorder, page)

        assert manager.get_session(session.id) == session

    def test_get_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.get_session("missing")

    def test_get_events(self, manager, recorder, page):
        session = _record(recorder, page, clicks=2)

        assert [e.sequence for e in manager.get_events(session.id)] == [0, 1, 2]

    def test_active_session_id(self, manager, recorder):
        assert manager.active_session_id is None

        session = recorder.start("https://example.com")

        assert manager.active_session_id == session.id


class TestRemoveSession:
    """Tests for deleting sessions."""

    def test_remove(self, manager, store, recorder, page):
        session = _record(recorder, page)

        manager.remove_session(session.id)

        assert store.get_session(session.id) is None
        assert store.count_events(session.id) == 0

    def test_remove_active_session_refused(self, manager, store, recorder):
        session = recorder.start("https://example.com")

        with pytest.raises(RecordingActiveError):
            manager.remove_session(session.id)

        assert store.get_session(session.id) is not None

    def test_remove_unknown(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.remove_session("missing")


class TestRestoreState:
    """Tests for closing interrupted sessions."""

    def test_unended_sessions_are_closed(self, manager, store):
        interrupted = Session(url="https://example.com")
        store.create_session(interrupted)

        closed = manager.restore_state()

        assert [s.id for s in closed] == [interrupted.id]
        assert store.get_session(interrupted.id).ended_at is not None

    def test_active_and_ended_sessions_untouched(self, manager, recorder, page):
        ended = _record(recorder, page)
        active = recorder.start("https://example.com/next")

        assert manager.restore_state() == []
        assert manager.get_session(ended.id).ended_at == ended.ended_at
        assert manager.get_session(active.id).ended_at is None


class TestExport:
    """Tests for export_session."""

    def test_export_session(self, manager, recorder, page):
        session = _record(recorder, page)

        document = manager.export_session(session.id)

        assert document.startswith("# DOM Recording Transcript\n## Session: Contact")
        assert "## Reproduction Steps" in document

    def test_export_with_options(self, manager, recorder, page):
        session = _record(recorder, page)

        document = manager.export_session(
            session.id, ExportOptions(include_reproduction_steps=False)
        )

        assert "## Reproduction Steps" not in document

    def test_export_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.export_session("missing")

    def test_export_defaults_come_from_settings(self, store, recorder, page):
        manager = SessionManager(
            store, recorder, settings=Settings(_env_file=None, include_reproduction_steps=False)
        )
        session = _record(recorder, page)

        document = manager.export_session(session.id)

        assert "## Reproduction Steps" not in document


class TestExportAll:
    """Tests for export_all_sessions."""

    def test_sessions_joined_by_rule(self, manager, recorder, page):
        _record(recorder, page, url="https://example.com/one")
        _record(recorder, page, url="https://example.com/two")

        document = manager.export_all_sessions()

        parts = document.split("\n\n---\n\n")
        assert len(parts) == 2
        assert all(part.startswith("# DOM Recording Transcript") for part in parts)
        assert parts == [
            manager.export_session(s.id) for s in manager.list_sessions()
        ]

    def test_no_sessions(self, manager):
        assert manager.export_all_sessions() == ""


class TestClearAll:
    """Tests for clear_all."""

    def test_deletes_every_session(self, manager, store, recorder, page):
        sessions = [_record(recorder, page), _record(recorder, page)]

        assert manager.clear_all() == 2

        assert store.list_sessions() == []
        assert all(store.count_events(s.id) == 0 for s in sessions)

    def test_stops_active_recording(self, manager, store, recorder, page):
        session = recorder.start("https://example.com", page=page)

        manager.clear_all()

        assert recorder.is_recording is False
        assert store.get_session(session.id) is None

    def test_without_recorder(self, store, settings):
        store.create_session(Session(url="https://example.com"))

        assert SessionManager(store, settings=settings).clear_all() == 1
        assert store.list_sessions() == []
