"""In-memory EventStore."""

from typing import Optional

import structlog

from ..recording.models import Event, Session
from .base import EventStore

logger = structlog.get_logger()


class InMemoryEventStore(EventStore):
    """Dict-backed store, deduplicating appends by event id.

    Example:
        store = InMemoryEventStore()
        store.create_session(session)
        store.append(events)
        store.query_ordered(session.id)
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._events: dict[str, dict[str, Event]] = {}
        self.log = logger.bind(component="memory_store")

    def append(self, events: list[Event]) -> None:
        duplicates = 0
        for event in events:
            by_id = self._events.setdefault(event.session_id, {})
            if event.id in by_id:
                duplicates += 1
                continue
            by_id[event.id] = event

        if duplicates:
            self.log.debug("Skipped already stored events", duplicates=duplicates)

    def create_session(self, session: Session) -> None:
        self._sessions[session.id] = session
        self._events.setdefault(session.id, {})

    def update_session(self, session: Session) -> None:
        self._sessions[session.id] = session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def list_sessions(self) -> list[Session]:
        return sorted(self._sessions.values(), key=lambda s: s.started_at, reverse=True)

    def delete_session(self, session_id: str) -> bool:
        self._events.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def query_ordered(self, session_id: str) -> list[Event]:
        events = self._events.get(session_id, {}).values()
        return sorted(events, key=lambda e: e.sequence if e.sequence is not None else -1)

    def count_events(self, session_id: str) -> int:
        return len(self._events.get(session_id, {}))
