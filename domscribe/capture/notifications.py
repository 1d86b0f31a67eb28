"""Notification types delivered by the observation source.

The observation source (a browser driver, a replayed recording, a test)
hands these to ChangeBatcher.deliver() and InteractionCapturer.handle().
Node fields hold live bs4 nodes; they are only read synchronously during
delivery and never stored in an event.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ..recording.models import MutationType, NavigationType


@dataclass
class StructuralChange:
    """One structural change record.

    For ``childList`` changes, ``added_nodes`` are already attached to
    ``target`` and ``removed_nodes`` are already detached from it.
    """

    type: MutationType
    target: Any
    added_nodes: list[Any] = field(default_factory=list)
    removed_nodes: list[Any] = field(default_factory=list)
    attribute_name: Optional[str] = None
    old_value: Optional[str] = None


@dataclass
class ClickNotification:
    target: Any
    button: int = 0
    x: float = 0
    y: float = 0
    ctrl_key: bool = False
    shift_key: bool = False
    alt_key: bool = False
    meta_key: bool = False


@dataclass
class InputNotification:
    target: Any
    value: str
    input_type: Optional[str] = None  # Derived from the target when omitted
    selection_start: Optional[int] = None
    selection_end: Optional[int] = None


@dataclass
class FocusNotification:
    target: Any
    focused: bool = True


@dataclass
class ScrollNotification:
    scroll_x: float
    scroll_y: float
    target: Any = None  # None means the document


@dataclass
class NavigationNotification:
    """Back/forward or hash-change navigation."""

    url: str
    navigation_type: NavigationType = NavigationType.POPSTATE


@dataclass
class ErrorNotification:
    """Uncaught script error or console error."""

    message: str
    source: Optional[str] = None
    lineno: Optional[int] = None
    colno: Optional[int] = None
    stack: Optional[str] = None
    console: bool = False


class BrowserHistory(Protocol):
    """History object whose push/replace calls are intercepted."""

    url: str

    def push_state(self, state: Any, title: str, url: Optional[str] = None) -> None:
        ...

    def replace_state(self, state: Any, title: str, url: Optional[str] = None) -> None:
        ...
