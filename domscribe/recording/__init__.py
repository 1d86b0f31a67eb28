"""Recording module - session lifecycle and event sequencing.

This module provides:
- Event, payload and session models
- SessionContext handed to the capture components
- Recorder: redaction, gap-free sequencing and buffered persistence
"""

from .models import (
    DOCUMENT_DESCRIPTOR,
    BoundingBox,
    ClickPayload,
    Coordinates,
    DOMFragment,
    ElementDescriptor,
    ErrorPayload,
    Event,
    EventPayload,
    EventType,
    ExportConfig,
    FocusPayload,
    InputPayload,
    Modifiers,
    MutationPayload,
    MutationType,
    NavigationPayload,
    NavigationType,
    RecordingState,
    RedactionRule,
    RuleType,
    ScrollPayload,
    Session,
    SessionConfig,
)
from .context import SessionContext
from .orchestrator import Recorder

__all__ = [
    # Models
    "EventType",
    "RuleType",
    "MutationType",
    "NavigationType",
    "RecordingState",
    "BoundingBox",
    "ElementDescriptor",
    "DOCUMENT_DESCRIPTOR",
    "DOMFragment",
    "MutationPayload",
    "Coordinates",
    "Modifiers",
    "ClickPayload",
    "InputPayload",
    "ScrollPayload",
    "NavigationPayload",
    "FocusPayload",
    "ErrorPayload",
    "EventPayload",
    "Event",
    "RedactionRule",
    "ExportConfig",
    "SessionConfig",
    "Session",
    # Context
    "SessionContext",
    # Orchestrator
    "Recorder",
]
