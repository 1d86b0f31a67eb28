"""Storage module - the persistence boundary and session management."""

from .base import EventStore
from .memory import InMemoryEventStore
from .session_manager import SessionManager

__all__ = [
    "EventStore",
    "InMemoryEventStore",
    "SessionManager",
]
