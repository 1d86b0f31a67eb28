"""Rule-based PII redaction for captured events.

Every event passes through RedactionEngine.process() before the recorder
assigns it a sequence number, so nothing reaches the store unredacted.
"""

import re
from typing import Optional

import structlog

from ..recording.models import (
    DOMFragment,
    ElementDescriptor,
    ErrorPayload,
    Event,
    EventType,
    InputPayload,
    MutationPayload,
    NavigationPayload,
    RedactionRule,
    RuleType,
)
from .patterns import DEFAULT_REDACTION_RULES

logger = structlog.get_logger()

DEFAULT_REPLACEMENT = "[REDACTED]"

# tag[attr="value"] with an optional *, ^ or $ operator before "="
SELECTOR_PATTERN = re.compile(r'^([a-zA-Z][\w-]*)?\[([\w-]+)([*^$]?)="([^"]+)"\]$')


class RedactionEngine:
    """Applies an ordered rule list to events.

    Rule kinds:
    - input-type: full-value replacement of input events by input type
    - selector: full-value replacement of input events whose target matches
      a ``tag[attr<op>="value"]`` pattern
    - attribute: full-value replacement of fragment attributes by name
    - regex: cascading substitution over every captured string

    Example:
        engine = RedactionEngine()
        engine.load_rules(custom_rules)
        safe_event = engine.process(event)
    """

    def __init__(self, rules: Optional[list[RedactionRule]] = None):
        self.log = logger.bind(component="redaction_engine")
        self._rules: list[RedactionRule] = []
        self._compiled: dict[str, re.Pattern] = {}
        self.load_rules(rules)

    @property
    def rules(self) -> list[RedactionRule]:
        """Active rules in application order."""
        return list(self._rules)

    def load_rules(self, custom_rules: Optional[list[RedactionRule]] = None) -> None:
        """Load built-in rules followed by custom rules and compile regexes."""
        self._rules = [*DEFAULT_REDACTION_RULES, *(custom_rules or [])]
        self._compiled = {}
        for rule in self._rules:
            self._compile(rule)

        self.log.debug(
            "Redaction rules loaded",
            rule_count=len(self._rules),
            regex_count=len(self._compiled),
        )

    def add_rule(self, rule: RedactionRule) -> None:
        """Append a rule to the end of the list."""
        self._rules.append(rule)
        self._compile(rule)

    def toggle_rule(self, rule_id: str, enabled: bool) -> list[RedactionRule]:
        """Enable or disable a rule by id and return the new rule list.

        Rules are immutable; the toggled rule is replaced by a copy. Unknown
        ids leave the list unchanged.
        """
        rules = list(self._rules)
        for index, rule in enumerate(rules):
            if rule.id == rule_id:
                updated = rule.model_copy(update={"enabled": enabled})
                rules[index] = updated
                self._rules = rules
                self._compiled.pop(rule_id, None)
                self._compile(updated)
                break
        return self.rules

    def _compile(self, rule: RedactionRule) -> None:
        if rule.type != RuleType.REGEX or not rule.enabled:
            return
        try:
            self._compiled[rule.id] = re.compile(rule.pattern, re.IGNORECASE)
        except re.error as e:
            self.log.warning(
                "Invalid regex pattern, rule skipped",
                rule_id=rule.id,
                pattern=rule.pattern,
                error=str(e),
            )

    # =========================================================================
    # Event processing
    # =========================================================================

    def process(self, event: Event) -> Event:
        """Return a redacted copy of event. The input is never modified."""
        update: dict = {}

        if event.target.label:
            update["target"] = event.target.model_copy(
                update={"label": self.redact_text(event.target.label)}
            )

        payload = event.payload
        if event.type == EventType.INPUT and isinstance(payload, InputPayload):
            update["payload"] = self._redact_input(event.target, payload)
        elif isinstance(payload, MutationPayload):
            update["payload"] = self._redact_mutation(payload)
        elif isinstance(payload, NavigationPayload) and payload.page_source:
            update["payload"] = payload.model_copy(
                update={"page_source": self.redact_text(payload.page_source)}
            )
        elif isinstance(payload, ErrorPayload):
            update["payload"] = payload.model_copy(update={
                "message": self.redact_text(payload.message),
                "stack": self._redact_optional(payload.stack),
            })

        if event.dom_snapshot is not None:
            update["dom_snapshot"] = self.redact_fragment(event.dom_snapshot)

        return event.model_copy(update=update)

    def redact_text(self, text: str) -> str:
        """Run every enabled regex rule over text, in list order.

        Each rule sees the output of the previous one.
        """
        result = text
        for rule in self._rules:
            if not rule.enabled or rule.type != RuleType.REGEX:
                continue
            pattern = self._compiled.get(rule.id)
            if pattern is not None:
                # Replacement is literal text, not a template
                result = pattern.sub(lambda _m, r=rule.replacement: r, result)
        return result

    def redact_fragment(self, fragment: DOMFragment) -> DOMFragment:
        return fragment.model_copy(update={
            "html": self.redact_text(fragment.html),
            "text": self.redact_text(fragment.text),
            "attributes": self._redact_attributes(fragment.attributes),
        })

    def _redact_optional(self, text: Optional[str]) -> Optional[str]:
        return self.redact_text(text) if text else text

    def _redact_input(self, target: ElementDescriptor, payload: InputPayload) -> InputPayload:
        replacement = self.full_value_replacement(target, payload.input_type)
        if replacement is not None:
            return payload.model_copy(update={"value": replacement})
        return payload.model_copy(update={"value": self.redact_text(payload.value)})

    def _redact_mutation(self, payload: MutationPayload) -> MutationPayload:
        return payload.model_copy(update={
            "added_nodes": [self.redact_fragment(f) for f in payload.added_nodes],
            "removed_nodes": [self.redact_fragment(f) for f in payload.removed_nodes],
            "old_value": self._redact_attribute_value(payload.attribute_name, payload.old_value),
            "new_value": self._redact_attribute_value(payload.attribute_name, payload.new_value),
            "parent_html_before": self._redact_optional(payload.parent_html_before),
            "parent_html_after": self._redact_optional(payload.parent_html_after),
        })

    def _redact_attribute_value(self, name: Optional[str], value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if name:
            replacement = self._attribute_replacement(name)
            if replacement is not None:
                return replacement
        return self.redact_text(value)

    # =========================================================================
    # Full-value rules
    # =========================================================================

    def full_value_replacement(self, target: ElementDescriptor, input_type: str) -> Optional[str]:
        """Replacement of the first input-type or selector rule matching.

        Returns None when no full-value rule applies.
        """
        for rule in self._rules:
            if not rule.enabled:
                continue

            if rule.type == RuleType.INPUT_TYPE and rule.pattern == input_type:
                return rule.replacement or DEFAULT_REPLACEMENT

            if rule.type == RuleType.SELECTOR and target.css_selector:
                patterns = [p.strip() for p in rule.pattern.split(",")]
                if any(self.matches_selector_pattern(target, p) for p in patterns):
                    return rule.replacement or DEFAULT_REPLACEMENT

        return None

    def matches_selector_pattern(self, target: ElementDescriptor, pattern: str) -> bool:
        """Match a ``tag[attr<op>="value"]`` pattern against a descriptor.

        ``id`` is compared against the descriptor id; other attributes are
        looked up in the css selector. Syntax outside this form never matches.
        """
        match = SELECTOR_PATTERN.match(pattern)
        if not match:
            return False

        tag, attr, op, value = match.groups()
        if tag and tag.lower() != target.tag_name:
            return False

        if attr == "id":
            return bool(target.id) and self._match_attribute_value(target.id, op, value)

        return value in target.css_selector

    @staticmethod
    def _match_attribute_value(actual: str, op: str, expected: str) -> bool:
        if op == "*":
            return expected in actual
        if op == "^":
            return actual.startswith(expected)
        if op == "$":
            return actual.endswith(expected)
        return actual == expected

    def _attribute_replacement(self, name: str) -> Optional[str]:
        for rule in self._rules:
            if not rule.enabled or rule.type != RuleType.ATTRIBUTE:
                continue
            names = [p.strip() for p in rule.pattern.split(",")]
            if name in names:
                return rule.replacement
        return None

    def _redact_attributes(self, attrs: dict[str, str]) -> dict[str, str]:
        result: dict[str, str] = {}
        for key, value in attrs.items():
            replacement = self._attribute_replacement(key)
            result[key] = replacement if replacement is not None else self.redact_text(value)
        return result
