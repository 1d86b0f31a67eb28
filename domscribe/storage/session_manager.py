"""Session management on top of an EventStore."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog

from ..config import Settings, get_settings
from ..errors import RecordingActiveError, SessionNotFoundError
from ..export.engine import DocumentExporter, ExportOptions
from ..recording.models import Event, Session
from ..utils.logging import log_operation
from .base import EventStore

if TYPE_CHECKING:
    from ..recording.orchestrator import Recorder

logger = structlog.get_logger()


class SessionManager:
    """List, inspect, delete and export recorded sessions.

    Example:
        manager = SessionManager(store, recorder)
        manager.restore_state()
        for session in manager.list_sessions():
            print(session.title, session.event_count)
        markdown = manager.export_session(session.id)
    """

    def __init__(
        self,
        store: EventStore,
        recorder: Optional["Recorder"] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize manager.

        Args:
            store: Store holding sessions and events
            recorder: Recorder whose active session is protected from deletion
            settings: Source of the default export options
        """
        self.store = store
        self.recorder = recorder
        self.settings = settings or get_settings()
        self.log = logger.bind(component="session_manager")

    @property
    def active_session_id(self) -> Optional[str]:
        if self.recorder is None or not self.recorder.is_recording:
            return None
        return self.recorder.session.id

    def list_sessions(self) -> list[Session]:
        """All sessions, most recently started first."""
        return self.store.list_sessions()

    def get_session(self, session_id: str) -> Session:
        """Get a session by id.

        Raises:
            SessionNotFoundError: If the session is not in the store
        """
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def get_events(self, session_id: str) -> list[Event]:
        """Events of a session in sequence order."""
        self.get_session(session_id)
        return self.store.query_ordered(session_id)

    def remove_session(self, session_id: str) -> None:
        """Delete a session and its events.

        Raises:
            RecordingActiveError: If the session is being recorded
            SessionNotFoundError: If the session is not in the store
        """
        if session_id == self.active_session_id:
            raise RecordingActiveError(f"Cannot delete active session {session_id}")

        if not self.store.delete_session(session_id):
            raise SessionNotFoundError(f"Session not found: {session_id}")

        self.log.info("Session deleted", session_id=session_id)

    def restore_state(self) -> list[Session]:
        """Close sessions left without an end time by an interrupted recorder.

        Returns:
            The sessions that were closed
        """
        closed = []
        for session in self.store.list_sessions():
            if session.ended_at is not None or session.id == self.active_session_id:
                continue

            session = session.model_copy(update={
                "ended_at": datetime.now(timezone.utc),
                "event_count": self.store.count_events(session.id),
            })
            self.store.update_session(session)
            closed.append(session)

        if closed:
            self.log.warning(
                "Closed interrupted sessions",
                count=len(closed),
                session_ids=[s.id for s in closed],
            )
        return closed

    def export_session(self, session_id: str, options: Optional[ExportOptions] = None) -> str:
        """Render a stored session as a Markdown transcript.

        Raises:
            SessionNotFoundError: If the session is not in the store
        """
        with log_operation("export_session", logger=self.log, session_id=session_id) as op:
            session = self.get_session(session_id)
            events = self.store.query_ordered(session_id)
            document = self._exporter(options).export(session, events)
            op["event_count"] = len(events)
            op["characters"] = len(document)
        return document

    def export_all_sessions(self, options: Optional[ExportOptions] = None) -> str:
        """Render every stored session, separated by horizontal rules."""
        exporter = self._exporter(options)
        documents = [
            exporter.export(session, self.store.query_ordered(session.id))
            for session in self.store.list_sessions()
        ]
        self.log.info("Exported all sessions", count=len(documents))
        return "\n\n---\n\n".join(documents)

    def clear_all(self) -> int:
        """Stop any active recording and delete every session.

        Returns:
            Number of sessions deleted
        """
        if self.recorder is not None and self.recorder.is_recording:
            self.recorder.stop()

        deleted = 0
        for session in self.store.list_sessions():
            if self.store.delete_session(session.id):
                deleted += 1

        self.log.info("Cleared all sessions", count=deleted)
        return deleted

    def _exporter(self, options: Optional[ExportOptions]) -> DocumentExporter:
        return DocumentExporter(options or ExportOptions.from_settings(self.settings))
