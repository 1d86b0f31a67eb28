"""Capture module - DOM changes and user interactions to events.

This module provides:
- Semantic element description (role, label, CSS selector, XPath)
- Micro-batched structural change capture with before/after parent HTML
- Interaction capture with debounced input and throttled scroll
"""

from .change_batcher import IGNORED_TAGS, ChangeBatcher
from .describer import ElementDescriber, LayoutProvider
from .interactions import InteractionCapturer, input_type_of
from .notifications import (
    BrowserHistory,
    ClickNotification,
    ErrorNotification,
    FocusNotification,
    InputNotification,
    NavigationNotification,
    ScrollNotification,
    StructuralChange,
)

__all__ = [
    # Describer
    "ElementDescriber",
    "LayoutProvider",
    # Structural changes
    "ChangeBatcher",
    "IGNORED_TAGS",
    # Interactions
    "InteractionCapturer",
    "input_type_of",
    # Notifications
    "StructuralChange",
    "ClickNotification",
    "InputNotification",
    "FocusNotification",
    "ScrollNotification",
    "NavigationNotification",
    "ErrorNotification",
    "BrowserHistory",
]
