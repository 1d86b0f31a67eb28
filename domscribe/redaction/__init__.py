"""Redaction module - strip PII before anything is persisted.

This module provides:
- HTML sanitization (scripts, event handlers and unsafe URLs removed)
- Rule-based redaction (input types, selectors, attribute names, regexes)
- Sensitive-site detection
"""

from .engine import DEFAULT_REPLACEMENT, RedactionEngine
from .patterns import DEFAULT_REDACTION_RULES, SENSITIVE_DOMAINS, is_sensitive_domain
from .sanitizer import (
    TRUNCATION_MARKER,
    extract_text,
    outer_html,
    sanitize_and_truncate,
    sanitize_attributes,
    sanitize_html,
)

__all__ = [
    # Engine
    "RedactionEngine",
    "DEFAULT_REPLACEMENT",
    # Rules
    "DEFAULT_REDACTION_RULES",
    "SENSITIVE_DOMAINS",
    "is_sensitive_domain",
    # Sanitizer
    "sanitize_html",
    "sanitize_and_truncate",
    "sanitize_attributes",
    "extract_text",
    "outer_html",
    "TRUNCATION_MARKER",
]
