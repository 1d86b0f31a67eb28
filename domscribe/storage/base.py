"""Persistence boundary for sessions and events."""

from abc import ABC, abstractmethod
from typing import Optional

from ..recording.models import Event, Session


class EventStore(ABC):
    """Append-only event log keyed by session id and sequence.

    Appends are at-least-once: a batch may be retried after a failure whose
    effects partly landed. Implementations must treat an event id they have
    already stored as a no-op.
    """

    @abstractmethod
    def append(self, events: list[Event]) -> None:
        """Store a batch of sequenced events."""
        pass

    @abstractmethod
    def create_session(self, session: Session) -> None:
        pass

    @abstractmethod
    def update_session(self, session: Session) -> None:
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    def list_sessions(self) -> list[Session]:
        """All sessions, most recently started first."""
        pass

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        """Delete a session and its events. Returns False if it was unknown."""
        pass

    @abstractmethod
    def query_ordered(self, session_id: str) -> list[Event]:
        """Events of a session ordered by sequence."""
        pass

    @abstractmethod
    def count_events(self, session_id: str) -> int:
        pass
