"""Markdown templates and formatting helpers for transcripts."""

import re
from datetime import datetime, timezone
from typing import Optional

from ..recording.models import EventType
from ..redaction.sanitizer import TRUNCATION_MARKER

HEADER_TEMPLATE = """# DOM Recording Transcript
## Session: {title}

**URL:** {url}
**Recorded:** {start_time} - {end_time}
**Duration:** {duration}
**Events:** {event_count}
"""

LLM_CONTEXT = """## Context for LLM

This recording captures user interactions and DOM changes on a web page.
Use this to understand what the user did and what happened in response.

**Format Guide:**
- `[ACTION]` = User-initiated action
- `[MUTATION]` = DOM change (automatic)
- `[ERROR]` = JavaScript or console error
- `[NAV]` = Navigation event
- Code blocks contain relevant DOM fragments
- Entries are ordered by when the recorder received them; a delayed entry
  (debounced input, batched DOM change) can appear after a later-observed one
"""

SUMMARY_TEMPLATE = """## Summary

| Metric | Value |
|--------|-------|
| Total Actions | {action_count} |
| Total Mutations | {mutation_count} |
| Errors | {error_count} |
| Navigations | {nav_count} |
| Redactions Applied | {redaction_count} |
"""

EVENT_TYPE_LABELS: dict[EventType, str] = {
    EventType.MUTATION_ADD: "[MUTATION] Element Added",
    EventType.MUTATION_REMOVE: "[MUTATION] Element Removed",
    EventType.MUTATION_ATTRIBUTE: "[MUTATION] Attribute Changed",
    EventType.MUTATION_TEXT: "[MUTATION] Text Changed",
    EventType.CLICK: "[ACTION] Click",
    EventType.INPUT: "[ACTION] Input",
    EventType.SCROLL: "[ACTION] Scroll",
    EventType.NAVIGATION: "[NAV] Navigation",
    EventType.FOCUS: "[ACTION] Focus",
    EventType.BLUR: "[ACTION] Blur",
    EventType.JS_ERROR: "[ERROR] JavaScript Error",
    EventType.CONSOLE_ERROR: "[ERROR] Console Error",
}

_MARKDOWN_SPECIAL = re.compile(r"([*_`\[\]()#>])")


def format_relative_time(elapsed_ms: float) -> str:
    """Format elapsed milliseconds as MM:SS.mmm."""
    elapsed = max(int(elapsed_ms), 0)
    minutes = elapsed // 60000
    seconds = (elapsed % 60000) // 1000
    millis = elapsed % 1000
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_datetime(value: datetime) -> str:
    """Format a datetime as 'YYYY-MM-DD HH:MM:SS' in UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(start: datetime, end: datetime) -> str:
    """Human-readable duration, e.g. '1h 2m 3s', '4m 5s' or '6s'."""
    seconds = max(int((end - start).total_seconds()), 0)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def code_block(content: str, language: str = "html") -> str:
    return f"```{language}\n{content}\n```"


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, ending with '...' when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def truncate_fragment(html: str, max_length: int) -> str:
    """Cut an HTML fragment and mark the cut with an HTML comment."""
    if max_length <= 0 or len(html) <= max_length:
        return html
    return html[:max_length] + "\n" + TRUNCATION_MARKER


def format_time_range(start: datetime, end: Optional[datetime]) -> tuple[str, str]:
    """Formatted end time and duration, with placeholders while recording."""
    if end is None:
        return "In Progress", "N/A"
    return format_datetime(end), format_duration(start, end)
