"""Semantic descriptions of DOM nodes.

Converts a live node into an immutable ElementDescriptor (tag, role, label,
selectors) and captures sanitized DOMFragment snapshots. Nothing here keeps
a reference to the node it was given.
"""

import copy
from typing import Any, Callable, Optional, Sequence

import soupsieve
import structlog
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.dammit import EntitySubstitution

from ..recording.models import BoundingBox, DOMFragment, ElementDescriptor
from ..redaction.sanitizer import outer_html, sanitize_and_truncate, sanitize_attributes

logger = structlog.get_logger()

# Returns (x, y, width, height) for an element, or raises if it has no layout
LayoutProvider = Callable[[Tag], Sequence[float]]

MAX_LABEL_LENGTH = 50
MAX_FRAGMENT_TEXT = 500

IMPLICIT_ROLES = {
    "button": "button",
    "a": "link",
    "select": "combobox",
    "textarea": "textbox",
    "img": "img",
    "nav": "navigation",
    "main": "main",
    "header": "banner",
    "footer": "contentinfo",
    "form": "form",
    "table": "table",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "dialog": "dialog",
    "article": "article",
    "section": "region",
    "aside": "complementary",
}

INPUT_ROLES = {
    "text": "textbox",
    "password": "textbox",
    "email": "textbox",
    "tel": "textbox",
    "url": "textbox",
    "search": "searchbox",
    "number": "spinbutton",
    "range": "slider",
    "checkbox": "checkbox",
    "radio": "radio",
    "button": "button",
    "submit": "button",
    "reset": "button",
    "image": "button",
}

# Selector walks stop below these
SELECTOR_ROOTS = {"body", "html"}


def _root(node: Any) -> Any:
    while node.parent is not None:
        node = node.parent
    return node


def _text_content(node: Any) -> str:
    return " ".join(node.get_text(" ").split())


def _attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


class ElementDescriber:
    """Builds ElementDescriptors and DOMFragments from bs4 nodes.

    Example:
        describer = ElementDescriber()
        descriptor = describer.describe(soup.select_one("button"))
        descriptor.css_selector  # "form#login > button"
    """

    def __init__(self, layout: Optional[LayoutProvider] = None):
        """Initialize describer.

        Args:
            layout: Optional callable returning an element's bounding box as
                (x, y, width, height). Without one, bounding_rect is None.
        """
        self.layout = layout
        self.log = logger.bind(component="element_describer")

    def describe(self, node: Any) -> ElementDescriptor:
        """Describe a node. Never raises.

        Non-element nodes yield a partial descriptor with empty selectors.
        """
        if not isinstance(node, Tag) or isinstance(node, BeautifulSoup):
            return self._describe_non_element(node)

        return ElementDescriptor(
            tag_name=node.name.lower(),
            id=_attr(node, "id"),
            classes=list(node.get("class") or []),
            role=self.get_role(node),
            label=self.get_label(node),
            xpath=self.get_xpath(node),
            css_selector=self.get_css_selector(node),
            bounding_rect=self._bounding_rect(node),
        )

    def _describe_non_element(self, node: Any) -> ElementDescriptor:
        if isinstance(node, BeautifulSoup):
            tag_name = "#document"
        elif isinstance(node, Comment):
            tag_name = "#comment"
        elif isinstance(node, NavigableString):
            tag_name = "#text"
        else:
            tag_name = "unknown"
        return ElementDescriptor(tag_name=tag_name)

    # =========================================================================
    # Role and label
    # =========================================================================

    def get_role(self, element: Tag) -> Optional[str]:
        explicit = _attr(element, "role")
        if explicit:
            return explicit

        if element.name == "input":
            return INPUT_ROLES.get((_attr(element, "type") or "text").lower(), "textbox")

        return IMPLICIT_ROLES.get(element.name)

    def get_label(self, element: Tag) -> Optional[str]:
        """Human-readable label, first non-empty source wins."""
        sources = (
            lambda: _attr(element, "aria-label"),
            lambda: self._labelled_by(element),
            lambda: _attr(element, "title"),
            lambda: _attr(element, "alt"),
            lambda: _attr(element, "placeholder"),
            lambda: self._associated_label(element),
            lambda: self._visible_text(element),
        )

        for source in sources:
            label = source()
            if label and label.strip():
                return label.strip()

        return None

    def _labelled_by(self, element: Tag) -> Optional[str]:
        ids = (_attr(element, "aria-labelledby") or "").split()
        if not ids:
            return None

        root = _root(element)
        parts = []
        for label_id in ids:
            target = root.find(id=label_id)
            if target is not None:
                parts.append(_text_content(target))
        return " ".join(p for p in parts if p) or None

    def _associated_label(self, element: Tag) -> Optional[str]:
        element_id = _attr(element, "id")
        if element_id:
            label = _root(element).find("label", attrs={"for": element_id})
            if label is not None:
                return _text_content(label) or None

        parent_label = element.find_parent("label")
        if parent_label is not None:
            # Drop the control itself so its value is not part of the label
            clone = copy.copy(parent_label)
            for control in clone.find_all(["input", "select", "textarea"]):
                control.decompose()
            return _text_content(clone) or None

        return None

    def _visible_text(self, element: Tag) -> Optional[str]:
        text = _text_content(element)
        if not text:
            return None
        if len(text) > MAX_LABEL_LENGTH:
            return text[: MAX_LABEL_LENGTH - 3] + "..."
        return text

    # =========================================================================
    # Selectors
    # =========================================================================

    def get_css_selector(self, element: Tag) -> str:
        """CSS selector, shortened at the first ancestor with an id."""
        element_id = _attr(element, "id")
        if element_id:
            return f"#{soupsieve.escape(element_id)}"

        path: list[str] = []
        current = element

        while (
            isinstance(current, Tag)
            and not isinstance(current, BeautifulSoup)
            and current.name not in SELECTOR_ROOTS
        ):
            current_id = _attr(current, "id")
            if current_id:
                path.insert(0, f"#{soupsieve.escape(current_id)}")
                break

            selector = current.name
            classes = list(current.get("class") or [])[:2]
            if classes:
                selector += "." + ".".join(soupsieve.escape(c) for c in classes)

            parent = current.parent
            if parent is not None:
                same_tag = [
                    s for s in parent.children
                    if isinstance(s, Tag) and s.name == current.name
                ]
                if len(same_tag) > 1:
                    # Identity, not ==: bs4 compares tags structurally
                    index = next(i for i, s in enumerate(same_tag, 1) if s is current)
                    selector += f":nth-of-type({index})"

            path.insert(0, selector)
            current = parent

        return " > ".join(path) or element.name

    def get_xpath(self, element: Tag) -> str:
        element_id = _attr(element, "id")
        if element_id:
            return f'//*[@id="{element_id}"]'

        parts: list[str] = []
        current = element

        while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
            index = 1 + sum(
                1 for s in current.previous_siblings
                if isinstance(s, Tag) and s.name == current.name
            )
            parts.insert(0, f"{current.name}[{index}]")
            current = current.parent

        return "/" + "/".join(parts)

    def _bounding_rect(self, element: Tag) -> Optional[BoundingBox]:
        if self.layout is None:
            return None
        try:
            x, y, width, height = self.layout(element)
            return BoundingBox(x=round(x), y=round(y), width=round(width), height=round(height))
        except Exception as e:
            self.log.debug("Bounding box unavailable", tag=element.name, error=str(e))
            return None

    # =========================================================================
    # Fragments
    # =========================================================================

    def capture_fragment(self, node: Any, max_length: int = 2000) -> Optional[DOMFragment]:
        """Capture a sanitized snapshot of a node.

        Args:
            node: Element or text node
            max_length: Maximum characters of sanitized HTML

        Returns:
            DOMFragment, or None when there is no node
        """
        if node is None:
            return None

        if isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
            return DOMFragment(
                html=sanitize_and_truncate(outer_html(node), max_length),
                text=node.get_text().strip()[:MAX_FRAGMENT_TEXT],
                attributes=sanitize_attributes(node.attrs),
            )

        if isinstance(node, NavigableString) and not isinstance(node, Comment):
            text = str(node).strip()
            return DOMFragment(html=EntitySubstitution.substitute_xml(text), text=text)

        return DOMFragment()
