"""User interaction capture with per-kind timing policies.

- click, focus, blur, navigation, errors: emitted immediately
- input: debounced per input stream (keyed by target XPath), last write wins
- scroll: opt-in, trailing-edge throttled
"""

from typing import Any, Callable, Optional

import structlog
from bs4 import Tag

from ..recording.context import SessionContext
from ..recording.models import (
    DOCUMENT_DESCRIPTOR,
    ClickPayload,
    Coordinates,
    ElementDescriptor,
    ErrorPayload,
    Event,
    EventType,
    FocusPayload,
    InputPayload,
    Modifiers,
    NavigationPayload,
    NavigationType,
    ScrollPayload,
)
from ..utils.scheduling import Debouncer, Throttler
from .describer import ElementDescriber
from .notifications import (
    BrowserHistory,
    ClickNotification,
    ErrorNotification,
    FocusNotification,
    InputNotification,
    NavigationNotification,
    ScrollNotification,
)

logger = structlog.get_logger()


def input_type_of(element: Any) -> str:
    """Input type as a form control reports it."""
    if not isinstance(element, Tag):
        return "text"
    if element.name == "textarea":
        return "textarea"
    if element.name == "select":
        return "select-multiple" if element.has_attr("multiple") else "select-one"
    if element.name == "input":
        return (element.get("type") or "text").lower()
    return "text"


class InteractionCapturer:
    """Converts interaction notifications into events.

    Example:
        capturer = InteractionCapturer(ElementDescriber(), emit=recorder.accept)
        capturer.start(context, history=browser_history)
        capturer.handle(ClickNotification(target=button, x=10, y=20))
        capturer.stop()  # flushes pending input and scroll
    """

    def __init__(
        self,
        describer: ElementDescriber,
        emit: Callable[[Event], None],
        max_fragment_size: int = 2000,
    ):
        self.describer = describer
        self.emit = emit
        self.max_fragment_size = max_fragment_size
        self.log = logger.bind(component="interaction_capturer")

        self._context: Optional[SessionContext] = None
        self._inputs: Optional[Debouncer[Event]] = None
        self._scrolls: Optional[Throttler[Event]] = None
        self._history: Optional[BrowserHistory] = None
        self._history_originals: dict[str, Callable] = {}

    @property
    def capturing(self) -> bool:
        return self._context is not None

    def start(self, context: SessionContext, history: Optional[BrowserHistory] = None) -> None:
        """Start capturing.

        Args:
            context: Session the events belong to
            history: Optional history object; its push_state/replace_state
                are wrapped to emit navigation events until stop()
        """
        self._context = context
        self._inputs = Debouncer(context.scheduler, context.config.debounce_ms, self._forward)
        self._scrolls = None
        if context.config.capture_scroll_events:
            self._scrolls = Throttler(context.scheduler, context.config.throttle_ms, self._forward)

        if history is not None:
            self._intercept_history(history)

        self.log.debug(
            "Capturing interactions",
            debounce_ms=context.config.debounce_ms,
            capture_scroll=context.config.capture_scroll_events,
        )

    def stop(self) -> None:
        """Stop capturing and flush debounced input and throttled scroll."""
        if self._context is None:
            return

        self._restore_history()

        inputs, scrolls = self._inputs, self._scrolls
        if inputs is not None:
            inputs.flush()
        if scrolls is not None:
            scrolls.flush()

        self._context = None
        self._inputs = None
        self._scrolls = None

    def _forward(self, event: Event) -> None:
        self.emit(event)

    # =========================================================================
    # Notification handlers
    # =========================================================================

    def handle(self, notification: Any) -> None:
        """Dispatch a notification to its handler by type."""
        if isinstance(notification, ClickNotification):
            self.on_click(notification)
        elif isinstance(notification, InputNotification):
            self.on_input(notification)
        elif isinstance(notification, FocusNotification):
            self.on_focus(notification)
        elif isinstance(notification, ScrollNotification):
            self.on_scroll(notification)
        elif isinstance(notification, NavigationNotification):
            self.on_navigation(notification)
        elif isinstance(notification, ErrorNotification):
            self.on_error(notification)
        else:
            self.log.warning("Unknown notification", type=type(notification).__name__)

    def on_click(self, notification: ClickNotification) -> None:
        if self._context is None or notification.target is None:
            return

        payload = ClickPayload(
            button=notification.button,
            coordinates=Coordinates(x=notification.x, y=notification.y),
            modifiers=Modifiers(
                ctrl=notification.ctrl_key,
                shift=notification.shift_key,
                alt=notification.alt_key,
                meta=notification.meta_key,
            ),
        )
        snapshot = self.describer.capture_fragment(notification.target, self.max_fragment_size)
        self.emit(self._event(EventType.CLICK, self.describer.describe(notification.target), payload, snapshot))

    def on_input(self, notification: InputNotification) -> None:
        if self._context is None or self._inputs is None or notification.target is None:
            return

        target = self.describer.describe(notification.target)
        payload = InputPayload(
            input_type=notification.input_type or input_type_of(notification.target),
            value=notification.value or "",
            selection_start=notification.selection_start,
            selection_end=notification.selection_end,
        )
        self._inputs.submit(target.xpath, self._event(EventType.INPUT, target, payload))

    def on_focus(self, notification: FocusNotification) -> None:
        """Focus or blur, depending on the notification's flag."""
        if self._context is None or notification.target is None:
            return

        event_type = EventType.FOCUS if notification.focused else EventType.BLUR
        payload = FocusPayload(focused=notification.focused)
        self.emit(self._event(event_type, self.describer.describe(notification.target), payload))

    def on_scroll(self, notification: ScrollNotification) -> None:
        if self._context is None or self._scrolls is None:
            return

        target = DOCUMENT_DESCRIPTOR
        if notification.target is not None:
            target = self.describer.describe(notification.target)

        payload = ScrollPayload(scroll_x=notification.scroll_x, scroll_y=notification.scroll_y)
        self._scrolls.submit(self._event(EventType.SCROLL, target, payload))

    def on_navigation(self, notification: NavigationNotification) -> None:
        self.emit_navigation(notification.url, notification.navigation_type)

    def on_error(self, notification: ErrorNotification) -> None:
        if self._context is None:
            return

        event_type = EventType.CONSOLE_ERROR if notification.console else EventType.JS_ERROR
        payload = ErrorPayload(
            message=notification.message,
            stack=notification.stack,
            source=notification.source,
            lineno=notification.lineno,
            colno=notification.colno,
        )
        self.emit(self._event(event_type, DOCUMENT_DESCRIPTOR, payload))

    def emit_navigation(self, url: str, navigation_type: NavigationType) -> None:
        if self._context is None:
            return
        payload = NavigationPayload(url=url, navigation_type=navigation_type)
        self.emit(self._event(EventType.NAVIGATION, DOCUMENT_DESCRIPTOR, payload))

    def _event(self, event_type: EventType, target: ElementDescriptor, payload, snapshot=None) -> Event:
        return Event(
            session_id=self._context.session_id,
            timestamp=self._context.elapsed_ms(),
            type=event_type,
            target=target,
            payload=payload,
            dom_snapshot=snapshot,
        )

    # =========================================================================
    # History interception
    # =========================================================================

    def _intercept_history(self, history: BrowserHistory) -> None:
        self._history = history
        self._history_originals = {
            "push_state": history.push_state,
            "replace_state": history.replace_state,
        }

        def wrap(name: str, navigation_type: NavigationType):
            original = self._history_originals[name]

            def wrapped(*args, **kwargs):
                result = original(*args, **kwargs)
                self.emit_navigation(history.url, navigation_type)
                return result

            return wrapped

        history.push_state = wrap("push_state", NavigationType.PUSH_STATE)
        history.replace_state = wrap("replace_state", NavigationType.REPLACE_STATE)

    def _restore_history(self) -> None:
        if self._history is None:
            return
        for name, original in self._history_originals.items():
            setattr(self._history, name, original)
        self._history = None
        self._history_originals = {}
