"""domscribe - DOM change and interaction transcripts for humans and LLMs.

Captures structural DOM changes and user interactions, redacts PII before
anything is persisted, and renders the ordered event log as Markdown.

Example:
    from domscribe import Recorder, InMemoryEventStore, DocumentExporter

    store = InMemoryEventStore()
    recorder = Recorder(store)
    session = recorder.start(url="https://example.com", title="Example")
    ...
    session = recorder.stop()
    print(DocumentExporter().export(session, store.query_ordered(session.id)))
"""

from .recording import Recorder
from .storage import EventStore, InMemoryEventStore, SessionManager
from .export import DocumentExporter, ExportOptions

__version__ = "0.1.0"

__all__ = [
    "DocumentExporter",
    "ExportOptions",
    "Recorder",
    "EventStore",
    "InMemoryEventStore",
    "SessionManager",
]
