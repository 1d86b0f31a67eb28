"""Micro-batching of structural DOM changes.

Before/after state is captured in the same turn a change is delivered;
only classification and event construction wait for the batch window.

Example:
    batcher = ChangeBatcher(ElementDescriber(), emit=recorder.accept)
    batcher.start(context)
    batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[p])])
    ...
    batcher.stop()  # drains anything still pending
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import structlog
from bs4 import BeautifulSoup, NavigableString, Tag

from ..recording.context import SessionContext
from ..recording.models import (
    DOMFragment,
    ElementDescriptor,
    Event,
    EventType,
    MutationPayload,
    MutationType,
)
from ..redaction.sanitizer import outer_html, sanitize_html
from ..utils.scheduling import TimerHandle
from .describer import ElementDescriber
from .notifications import StructuralChange

logger = structlog.get_logger()

IGNORED_TAGS = {"script", "style", "noscript", "link", "meta"}


@dataclass
class _BatchEntry:
    """A change plus everything captured from the live DOM at delivery."""

    mutation_type: MutationType
    timestamp: float
    target_tag: str
    target: ElementDescriptor
    has_added: bool = False
    has_removed: bool = False
    added: list[DOMFragment] = field(default_factory=list)
    removed: list[DOMFragment] = field(default_factory=list)
    attribute_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    parent_html_before: Optional[str] = None
    parent_html_after: Optional[str] = None
    snapshot: Optional[DOMFragment] = None


def _element_of(node: Any) -> Optional[Tag]:
    """The node itself when it is an element, else its parent element."""
    if isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
        return node
    parent = getattr(node, "parent", None)
    if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
        return parent
    return None


class ChangeBatcher:
    """Turns structural change notifications into mutation events.

    States: stopped -> observing -> stopped.
    """

    def __init__(
        self,
        describer: ElementDescriber,
        emit: Callable[[Event], None],
        max_nodes: int = 10,
        max_fragment_size: int = 2000,
    ):
        """Initialize batcher.

        Args:
            describer: Element describer for targets and fragments
            emit: Receives each event, in arrival order, when a batch drains
            max_nodes: Max added/removed fragments kept per change
            max_fragment_size: Max characters of each captured fragment
        """
        self.describer = describer
        self.emit = emit
        self.max_nodes = max_nodes
        self.max_fragment_size = max_fragment_size
        self.log = logger.bind(component="change_batcher")

        self._context: Optional[SessionContext] = None
        self._batch: list[_BatchEntry] = []
        self._timer: Optional[TimerHandle] = None

    @property
    def observing(self) -> bool:
        return self._context is not None

    @property
    def pending(self) -> int:
        """Number of captured changes waiting for the batch window."""
        return len(self._batch)

    def start(self, context: SessionContext) -> None:
        self._context = context
        self._batch = []
        self.log.debug("Observing structural changes", window_ms=context.config.batch_window_ms)

    def stop(self) -> None:
        """Stop observing and synchronously drain the pending batch."""
        if self._context is None:
            return
        self.flush()
        self._context = None

    def deliver(self, changes: list[StructuralChange]) -> None:
        """Capture a batch of changes and schedule classification."""
        context = self._context
        if context is None:
            self.log.debug("Changes delivered while stopped", count=len(changes))
            return

        for change in changes:
            entry = self._capture(change, context)
            if entry is not None:
                self._batch.append(entry)

        if self._batch and self._timer is None:
            self._timer = context.scheduler.call_later(
                context.config.batch_window_ms, self._on_timer
            )

    def flush(self) -> None:
        """Cancel the batch timer and drain now."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._drain()

    def _on_timer(self) -> None:
        self._timer = None
        self._drain()

    def _drain(self) -> None:
        context = self._context
        entries, self._batch = self._batch, []
        if context is None:
            return

        emitted = 0
        for entry in entries:
            event = self._to_event(entry, context)
            if event is not None:
                self.emit(event)
                emitted += 1

        if entries:
            self.log.debug("Batch drained", changes=len(entries), events=emitted)

    # =========================================================================
    # Capture (delivery time)
    # =========================================================================

    def _capture(self, change: StructuralChange, context: SessionContext) -> Optional[_BatchEntry]:
        element = _element_of(change.target)
        if element is None:
            return None

        entry = _BatchEntry(
            mutation_type=change.type,
            timestamp=context.elapsed_ms(),
            target_tag=element.name.lower(),
            target=self.describer.describe(element),
            snapshot=self.describer.capture_fragment(element, self.max_fragment_size),
        )

        if change.type == MutationType.CHILD_LIST:
            entry.has_added = bool(change.added_nodes)
            entry.has_removed = bool(change.removed_nodes)
            entry.added = self._fragments(change.added_nodes)
            entry.removed = self._fragments(change.removed_nodes)
            if context.config.export_config.include_parent_context:
                entry.parent_html_before = sanitize_html(self._reconstruct_before(element, change))
                entry.parent_html_after = sanitize_html(outer_html(element))

        elif change.type == MutationType.ATTRIBUTES:
            entry.attribute_name = change.attribute_name
            entry.old_value = change.old_value
            if change.attribute_name:
                value = element.get(change.attribute_name)
                if isinstance(value, list):
                    value = " ".join(value)
                entry.new_value = value

        elif change.type == MutationType.CHARACTER_DATA:
            entry.old_value = change.old_value
            if isinstance(change.target, NavigableString):
                text = str(change.target)
            else:
                text = element.get_text()
            entry.new_value = text or None

        return entry

    def _fragments(self, nodes: list[Any]) -> list[DOMFragment]:
        elements = [n for n in nodes if isinstance(n, Tag)][: self.max_nodes]
        return [self.describer.capture_fragment(n, self.max_fragment_size) for n in elements]

    def _reconstruct_before(self, parent: Tag, change: StructuralChange) -> str:
        """Parent HTML as it was before the change.

        Removed nodes are re-appended at the end; their original position is
        not known.
        """
        clone = copy.copy(parent)

        for added in change.added_nodes:
            match = next((child for child in clone.contents if child == added), None)
            if match is not None:
                match.extract()

        for removed in change.removed_nodes:
            clone.append(copy.copy(removed))

        return outer_html(clone)

    # =========================================================================
    # Classification (flush time)
    # =========================================================================

    @staticmethod
    def classify(entry: _BatchEntry) -> Optional[EventType]:
        if entry.mutation_type == MutationType.CHILD_LIST:
            if entry.has_added:
                return EventType.MUTATION_ADD
            if entry.has_removed:
                return EventType.MUTATION_REMOVE
            return None
        if entry.mutation_type == MutationType.ATTRIBUTES:
            return EventType.MUTATION_ATTRIBUTE
        if entry.mutation_type == MutationType.CHARACTER_DATA:
            return EventType.MUTATION_TEXT
        return None

    def _to_event(self, entry: _BatchEntry, context: SessionContext) -> Optional[Event]:
        event_type = self.classify(entry)
        if event_type is None or entry.target_tag in IGNORED_TAGS:
            return None

        return Event(
            session_id=context.session_id,
            timestamp=entry.timestamp,
            type=event_type,
            target=entry.target,
            payload=MutationPayload(
                mutation_type=entry.mutation_type,
                added_nodes=entry.added,
                removed_nodes=entry.removed,
                attribute_name=entry.attribute_name,
                old_value=entry.old_value,
                new_value=entry.new_value,
                parent_html_before=entry.parent_html_before,
                parent_html_after=entry.parent_html_after,
            ),
            dom_snapshot=entry.snapshot,
        )
