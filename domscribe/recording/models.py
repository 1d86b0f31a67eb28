"""Data models for recorded sessions and events.

Events are frozen pydantic models. The payload is a tagged union
discriminated by ``kind``; redaction and sequencing produce new instances
through ``model_copy`` rather than mutating an event in place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..config import DiffMode, Settings


class EventType(str, Enum):
    """Event type tags. The prefix before ``:`` is the event category."""

    MUTATION_ADD = "mutation:add"
    MUTATION_REMOVE = "mutation:remove"
    MUTATION_ATTRIBUTE = "mutation:attribute"
    MUTATION_TEXT = "mutation:text"
    CLICK = "user:click"
    INPUT = "user:input"
    SCROLL = "user:scroll"
    NAVIGATION = "user:navigation"
    FOCUS = "user:focus"
    BLUR = "user:blur"
    JS_ERROR = "error:js"
    CONSOLE_ERROR = "error:console"


class RuleType(str, Enum):
    """Matching strategy of a redaction rule."""

    INPUT_TYPE = "input-type"
    REGEX = "regex"
    SELECTOR = "selector"
    ATTRIBUTE = "attribute"


class MutationType(str, Enum):
    """Kind of structural change reported by the observation source."""

    CHILD_LIST = "childList"
    ATTRIBUTES = "attributes"
    CHARACTER_DATA = "characterData"


class NavigationType(str, Enum):
    """How a navigation happened."""

    PUSH_STATE = "pushState"
    REPLACE_STATE = "replaceState"
    POPSTATE = "popstate"
    HASHCHANGE = "hashchange"
    PAGELOAD = "pageload"


class RecordingState(str, Enum):
    """Lifecycle state of a recorder."""

    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Snapshots
# =============================================================================


class BoundingBox(_Frozen):
    x: int
    y: int
    width: int
    height: int


class ElementDescriptor(_Frozen):
    """Semantic snapshot of a DOM element.

    Holds only derived values; never a reference to the node it was built
    from.
    """

    tag_name: str
    id: Optional[str] = None
    classes: list[str] = Field(default_factory=list)
    role: Optional[str] = None
    label: Optional[str] = None
    xpath: str = ""
    css_selector: str = ""
    bounding_rect: Optional[BoundingBox] = None


DOCUMENT_DESCRIPTOR = ElementDescriptor(tag_name="document", xpath="/", css_selector=":root")


class DOMFragment(_Frozen):
    """Sanitized HTML, extracted text and attributes of a node."""

    html: str = ""
    text: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Payloads
# =============================================================================


class MutationPayload(_Frozen):
    kind: Literal["mutation"] = "mutation"
    mutation_type: MutationType
    added_nodes: list[DOMFragment] = Field(default_factory=list)
    removed_nodes: list[DOMFragment] = Field(default_factory=list)
    attribute_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    parent_html_before: Optional[str] = None
    parent_html_after: Optional[str] = None


class Coordinates(_Frozen):
    x: float = 0
    y: float = 0


class Modifiers(_Frozen):
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False

    @property
    def held(self) -> list[str]:
        """Names of held modifier keys in Ctrl, Shift, Alt, Meta order."""
        names = [("Ctrl", self.ctrl), ("Shift", self.shift), ("Alt", self.alt), ("Meta", self.meta)]
        return [name for name, pressed in names if pressed]


class ClickPayload(_Frozen):
    kind: Literal["click"] = "click"
    button: int = 0
    coordinates: Coordinates = Field(default_factory=Coordinates)
    modifiers: Modifiers = Field(default_factory=Modifiers)


class InputPayload(_Frozen):
    kind: Literal["input"] = "input"
    input_type: str = "text"
    value: str = ""
    selection_start: Optional[int] = None
    selection_end: Optional[int] = None

    @property
    def is_redacted(self) -> bool:
        """True when the value is a bracket-wrapped redaction tag."""
        return self.value.startswith("[") and self.value.endswith("]")


class ScrollPayload(_Frozen):
    kind: Literal["scroll"] = "scroll"
    scroll_x: float = 0
    scroll_y: float = 0


class NavigationPayload(_Frozen):
    kind: Literal["navigation"] = "navigation"
    url: str
    navigation_type: NavigationType
    page_source: Optional[str] = None


class FocusPayload(_Frozen):
    kind: Literal["focus"] = "focus"
    focused: bool


class ErrorPayload(_Frozen):
    kind: Literal["error"] = "error"
    message: str
    stack: Optional[str] = None
    source: Optional[str] = None
    lineno: Optional[int] = None
    colno: Optional[int] = None


EventPayload = Annotated[
    Union[
        MutationPayload,
        ClickPayload,
        InputPayload,
        ScrollPayload,
        NavigationPayload,
        FocusPayload,
        ErrorPayload,
    ],
    Field(discriminator="kind"),
]


class Event(_Frozen):
    """A single captured event.

    ``timestamp`` is milliseconds on the monotonic clock since the session
    started. ``sequence`` stays ``None`` until the recorder accepts the event
    into its outbound buffer.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    session_id: str
    timestamp: float
    sequence: Optional[int] = None
    type: EventType
    target: ElementDescriptor
    payload: EventPayload
    dom_snapshot: Optional[DOMFragment] = None

    @property
    def category(self) -> str:
        """Type tag prefix: ``user``, ``mutation`` or ``error``."""
        return self.type.value.split(":", 1)[0]


# =============================================================================
# Configuration data
# =============================================================================


class RedactionRule(_Frozen):
    """Pattern/replacement pair applied to strip PII."""

    id: str
    name: str
    type: RuleType
    pattern: str
    replacement: str
    enabled: bool = True


class ExportConfig(BaseModel):
    """Export-related settings captured with the session."""

    max_initial_html_size: int = 100 * 1024
    diff_mode: DiffMode = DiffMode.LINE
    include_parent_context: bool = True


class SessionConfig(BaseModel):
    """Per-session capture settings."""

    redaction_rules: list[RedactionRule] = Field(default_factory=list)
    capture_scroll_events: bool = False
    debounce_ms: int = 100
    throttle_ms: int = 200
    batch_window_ms: int = 50
    export_config: ExportConfig = Field(default_factory=ExportConfig)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        redaction_rules: Optional[list[RedactionRule]] = None,
    ) -> "SessionConfig":
        """Build a session config from application settings."""
        return cls(
            redaction_rules=redaction_rules or [],
            capture_scroll_events=settings.capture_scroll_events,
            debounce_ms=settings.input_debounce_ms,
            throttle_ms=settings.scroll_throttle_ms,
            batch_window_ms=settings.batch_window_ms,
            export_config=ExportConfig(
                max_initial_html_size=settings.max_initial_html_size,
                diff_mode=settings.diff_mode,
                include_parent_context=settings.include_parent_context,
            ),
        )


class Session(_Frozen):
    """One recording session."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    url: str = ""
    title: str = ""
    config: SessionConfig = Field(default_factory=SessionConfig)
    event_count: int = 0

    @property
    def duration_ms(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds() * 1000.0
