"""Per-session state shared by the capture components."""

from dataclasses import dataclass

from ..utils.scheduling import Scheduler
from .models import SessionConfig


@dataclass(frozen=True)
class SessionContext:
    """Session-scoped context handed to each component on start.

    Replaces any notion of a "current session": components only know the
    session they were started with.
    """

    session_id: str
    config: SessionConfig
    scheduler: Scheduler
    origin_ms: float

    def elapsed_ms(self) -> float:
        """Milliseconds since the session started, on the scheduler clock."""
        return self.scheduler.now() - self.origin_ms
