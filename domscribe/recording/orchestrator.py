"""Recording orchestration - sequencing, redaction and buffered persistence.

The Recorder is the only component that assigns sequence numbers or writes
events to the store. Events from the change batcher and the interaction
capturer arrive through accept(); each is redacted, sequenced and buffered.

Sequence order is arrival order at the recorder. A debounced input and a
delayed mutation batch can therefore be sequenced in a different order
than their notifications were observed; timestamps keep observation time.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from ..capture.change_batcher import ChangeBatcher
from ..capture.describer import ElementDescriber
from ..capture.interactions import InteractionCapturer
from ..capture.notifications import BrowserHistory, StructuralChange
from ..config import Settings, get_settings
from ..errors import RecordingActiveError
from ..redaction.engine import RedactionEngine
from ..redaction.patterns import is_sensitive_domain
from ..redaction.sanitizer import outer_html, sanitize_html
from ..storage.base import EventStore
from ..utils.logging import LogContext
from ..utils.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from .context import SessionContext
from .models import (
    DOCUMENT_DESCRIPTOR,
    Event,
    EventType,
    NavigationPayload,
    NavigationType,
    RecordingState,
    Session,
    SessionConfig,
)

logger = structlog.get_logger()

PAGE_SOURCE_TRUNCATION_MARKER = "<!-- TRUNCATED -->"


class Recorder:
    """Records one session at a time.

    Example:
        recorder = Recorder(InMemoryEventStore())
        session = recorder.start("https://example.com/contact", title="Contact", page=soup)
        recorder.deliver([StructuralChange(...)])
        recorder.handle(ClickNotification(target=button))
        session = recorder.stop()
    """

    def __init__(
        self,
        store: EventStore,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
        describer: Optional[ElementDescriber] = None,
    ):
        """Initialize recorder.

        Args:
            store: Persistence boundary events are flushed to
            scheduler: Timer source; defaults to the running asyncio loop
            settings: Application settings (defaults from the environment)
            describer: Element describer shared by the capture components
        """
        self.store = store
        self.scheduler = scheduler
        self.settings = settings or get_settings()
        self.describer = describer or ElementDescriber()
        self.redaction = RedactionEngine()
        self.batcher = ChangeBatcher(
            self.describer,
            emit=self.accept,
            max_nodes=self.settings.max_mutation_nodes,
            max_fragment_size=self.settings.max_dom_fragment_size,
        )
        self.capturer = InteractionCapturer(
            self.describer,
            emit=self.accept,
            max_fragment_size=self.settings.max_dom_fragment_size,
        )
        self.log = logger.bind(component="recorder")

        self._state = RecordingState.IDLE
        self._session: Optional[Session] = None
        self._context: Optional[SessionContext] = None
        self._sequence = 0
        self._buffer: list[Event] = []
        self._flush_timer: Optional[TimerHandle] = None
        self._limit_timer: Optional[TimerHandle] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        """The active session, or the last one recorded."""
        return self._session

    @property
    def is_recording(self) -> bool:
        return self._state == RecordingState.RECORDING

    def status(self) -> dict[str, Any]:
        """Current recording state."""
        return {
            "state": self._state.value,
            "session_id": self._session.id if self._session else None,
            "event_count": self._sequence,
            "buffered": len(self._buffer),
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(
        self,
        url: str,
        title: str = "",
        config: Optional[SessionConfig] = None,
        page: Any = None,
        history: Optional[BrowserHistory] = None,
    ) -> Session:
        """Start recording a new session.

        Args:
            url: Page URL being recorded
            title: Page title
            config: Session config; built from settings when omitted
            page: Optional document whose source is recorded as the pageload
            history: Optional history object to intercept

        Returns:
            The created session

        Raises:
            RecordingActiveError: If a session is already being recorded
        """
        if self._state != RecordingState.IDLE:
            raise RecordingActiveError(f"Already recording session {self._session.id}")

        if self.scheduler is None:
            self.scheduler = AsyncioScheduler()

        config = config or SessionConfig.from_settings(self.settings)
        session = Session(url=url, title=title, config=config)
        self.store.create_session(session)

        self._session = session
        self._context = SessionContext(
            session_id=session.id,
            config=config,
            scheduler=self.scheduler,
            origin_ms=self.scheduler.now(),
        )
        self._sequence = 0
        self._buffer = []
        self._state = RecordingState.RECORDING

        with LogContext(session_id=session.id):
            if self.settings.warn_on_sensitive_domains and is_sensitive_domain(url):
                self.log.warning("Recording a sensitive site, review the export before sharing", url=url)

            self.redaction.load_rules(config.redaction_rules)

            if page is not None:
                self._capture_initial_state(page, url)
                if self._state != RecordingState.RECORDING:
                    return self._session

            self.batcher.start(self._context)
            self.capturer.start(self._context, history=history)
            self._schedule_flush_tick()
            self._schedule_limit_check()

            self.log.info("Recording started", url=url, title=title)

        return session

    def stop(self) -> Optional[Session]:
        """Stop recording.

        Drains the change batch and pending input/scroll, then performs a
        final flush to the store before returning.

        Returns:
            The ended session, or the last recorded session when idle
        """
        if self._state != RecordingState.RECORDING:
            return self._session

        self._state = RecordingState.STOPPING
        session = self._session

        with LogContext(session_id=session.id):
            self._cancel_timers()
            self.batcher.stop()
            self.capturer.stop()
            self.flush()

            if self._buffer:
                self.log.error("Events could not be stored before stop", lost=len(self._buffer))
                self._buffer = []

            session = session.model_copy(update={
                "ended_at": datetime.now(timezone.utc),
                "event_count": self.store.count_events(session.id),
            })
            self.store.update_session(session)

            self._session = session
            self._context = None
            self._state = RecordingState.IDLE

            self.log.info(
                "Recording stopped",
                event_count=session.event_count,
                duration_ms=session.duration_ms,
            )

        return session

    # =========================================================================
    # Observation source entry points
    # =========================================================================

    def deliver(self, changes: list[StructuralChange]) -> None:
        """Forward structural changes to the change batcher."""
        self.batcher.deliver(changes)

    def handle(self, notification: Any) -> None:
        """Forward an interaction notification to the capturer."""
        self.capturer.handle(notification)

    # =========================================================================
    # Sequencing and buffering
    # =========================================================================

    def accept(self, event: Event) -> None:
        """Redact, sequence and buffer an event."""
        if self._state == RecordingState.IDLE:
            return

        if self._sequence >= self.settings.max_events_per_session:
            self.log.warning(
                "Session event limit reached, dropping event",
                limit=self.settings.max_events_per_session,
                event_type=event.type.value,
            )
            if self._state == RecordingState.RECORDING:
                self.stop()
            return

        redacted = self.redaction.process(event)
        self._buffer.append(redacted.model_copy(update={"sequence": self._sequence}))
        self._sequence += 1

        if len(self._buffer) >= self.settings.max_events_in_memory:
            self.flush()

    def flush(self) -> None:
        """Write buffered events to the store.

        On failure the events go back to the head of the buffer and are
        retried on the next tick.
        """
        if not self._buffer:
            return

        events, self._buffer = self._buffer, []
        try:
            self.store.append(events)
        except Exception as e:
            self.log.error("Failed to flush events", error=str(e), count=len(events))
            self._buffer = events + self._buffer
            return

        self.log.debug("Flushed events", count=len(events), last_sequence=events[-1].sequence)

    def _capture_initial_state(self, page: Any, url: str) -> None:
        source = sanitize_html(outer_html(page))
        max_size = self._context.config.export_config.max_initial_html_size
        if max_size > 0 and len(source) > max_size:
            source = source[:max_size] + "\n" + PAGE_SOURCE_TRUNCATION_MARKER

        self.accept(Event(
            session_id=self._context.session_id,
            timestamp=self._context.elapsed_ms(),
            type=EventType.NAVIGATION,
            target=DOCUMENT_DESCRIPTOR,
            payload=NavigationPayload(
                url=url,
                navigation_type=NavigationType.PAGELOAD,
                page_source=source,
            ),
        ))

    # =========================================================================
    # Timers
    # =========================================================================

    def _schedule_flush_tick(self) -> None:
        self._flush_timer = self.scheduler.call_later(
            self.settings.buffer_flush_interval_ms, self._on_flush_tick
        )

    def _on_flush_tick(self) -> None:
        self._flush_timer = None
        if self._state != RecordingState.RECORDING:
            return
        self.flush()
        self._schedule_flush_tick()

    def _schedule_limit_check(self) -> None:
        self._limit_timer = self.scheduler.call_later(
            self.settings.session_check_interval_ms, self._on_limit_check
        )

    def _on_limit_check(self) -> None:
        self._limit_timer = None
        if self._state != RecordingState.RECORDING:
            return

        max_duration_ms = self.settings.session_auto_stop_hours * 3600 * 1000
        if self._context.elapsed_ms() >= max_duration_ms:
            self.log.warning("Session duration limit reached, stopping", hours=self.settings.session_auto_stop_hours)
            self.stop()
            return

        self._schedule_limit_check()

    def _cancel_timers(self) -> None:
        for timer in (self._flush_timer, self._limit_timer):
            if timer is not None:
                timer.cancel()
        self._flush_timer = None
        self._limit_timer = None
