"""Export module - Markdown transcripts of recorded sessions.

This module provides:
- DocumentExporter: header, timeline, summary and reproduction steps
- Line-set diffs of mutated DOM
- Markdown templates and formatting helpers
"""

from .diff import (
    format_added_diff,
    format_attribute_diff,
    format_removed_diff,
    format_unified_diff,
)
from .engine import DocumentExporter, ExportOptions, export_session
from .templates import (
    EVENT_TYPE_LABELS,
    HEADER_TEMPLATE,
    LLM_CONTEXT,
    SUMMARY_TEMPLATE,
    code_block,
    escape_markdown,
    format_datetime,
    format_duration,
    format_relative_time,
    truncate,
    truncate_fragment,
)

__all__ = [
    # Engine
    "DocumentExporter",
    "ExportOptions",
    "export_session",
    # Diff
    "format_unified_diff",
    "format_added_diff",
    "format_removed_diff",
    "format_attribute_diff",
    # Templates
    "HEADER_TEMPLATE",
    "LLM_CONTEXT",
    "SUMMARY_TEMPLATE",
    "EVENT_TYPE_LABELS",
    "format_relative_time",
    "format_datetime",
    "format_duration",
    "escape_markdown",
    "code_block",
    "truncate",
    "truncate_fragment",
]
