"""Document exporter - render an ordered event log as a Markdown transcript.

Output sections, separated by ``---``:
1. Header and a fixed context block for LLM consumers
2. Initial Page Source (when a navigation event carries the page source)
3. Timeline, one block per event in sequence order
4. Summary table
5. Reproduction Steps (optional)
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ..config import DiffMode, Settings
from ..recording.models import (
    ClickPayload,
    ErrorPayload,
    Event,
    EventType,
    FocusPayload,
    InputPayload,
    MutationPayload,
    NavigationPayload,
    ScrollPayload,
    Session,
)
from .diff import (
    format_added_diff,
    format_attribute_diff,
    format_removed_diff,
    format_unified_diff,
)
from .templates import (
    EVENT_TYPE_LABELS,
    HEADER_TEMPLATE,
    LLM_CONTEXT,
    SUMMARY_TEMPLATE,
    code_block,
    escape_markdown,
    format_datetime,
    format_relative_time,
    format_time_range,
    truncate,
    truncate_fragment,
)

logger = structlog.get_logger()

SECTION_SEPARATOR = "---"


@dataclass
class ExportOptions:
    """Options for transcript export.

    Attributes:
        include_reproduction_steps: Render the Reproduction Steps section
        max_fragment_length: Characters kept of each embedded fragment
        min_fragment_length: Element snapshots shorter than this are omitted
        diff_mode: Mutation diff granularity; the session's own export
            config is used when None
    """

    include_reproduction_steps: bool = True
    max_fragment_length: int = 500
    min_fragment_length: int = 10
    diff_mode: DiffMode | str | None = None

    def __post_init__(self):
        """Convert string values to enums."""
        if isinstance(self.diff_mode, str):
            self.diff_mode = DiffMode(self.diff_mode.lower())

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExportOptions":
        """Options from settings; diff mode is left to each session's config."""
        return cls(
            include_reproduction_steps=settings.include_reproduction_steps,
            max_fragment_length=settings.export_max_fragment_length,
        )


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _type_name(event: Event) -> str:
    return getattr(event.type, "value", str(event.type))


class DocumentExporter:
    """Renders sessions as Markdown transcripts.

    Deterministic: the same session and events always render the same text.

    Example:
        exporter = DocumentExporter(ExportOptions(include_reproduction_steps=False))
        markdown = exporter.export(session, store.query_ordered(session.id))
    """

    def __init__(self, options: Optional[ExportOptions] = None):
        self.options = options or ExportOptions()
        self.log = logger.bind(component="document_exporter")

    def export(self, session: Session, events: list[Event]) -> str:
        """Render the transcript.

        Args:
            session: Session metadata for the header
            events: Events ordered by sequence

        Returns:
            Markdown document
        """
        diff_mode = self.options.diff_mode or session.config.export_config.diff_mode

        sections = [self.render_header(session), LLM_CONTEXT]

        initial_source = self.render_initial_page_source(events)
        if initial_source:
            sections.extend([SECTION_SEPARATOR, initial_source])

        sections.extend([
            SECTION_SEPARATOR,
            "## Timeline",
            self.render_timeline(session, events, diff_mode),
            SECTION_SEPARATOR,
            self.render_summary(events),
        ])

        if self.options.include_reproduction_steps:
            sections.extend([SECTION_SEPARATOR, self.render_reproduction_steps(session, events)])

        document = "\n\n".join(sections)

        self.log.debug(
            "Transcript rendered",
            session_id=session.id,
            event_count=len(events),
            characters=len(document),
        )
        return document

    # =========================================================================
    # Sections
    # =========================================================================

    def render_header(self, session: Session) -> str:
        end_time, duration = format_time_range(session.started_at, session.ended_at)
        return HEADER_TEMPLATE.format(
            title=escape_markdown(session.title),
            url=session.url,
            start_time=format_datetime(session.started_at),
            end_time=end_time,
            duration=duration,
            event_count=session.event_count,
        )

    def render_initial_page_source(self, events: list[Event]) -> Optional[str]:
        for event in events:
            if isinstance(event.payload, NavigationPayload) and event.payload.page_source:
                return f"## Initial Page Source\n\n{code_block(event.payload.page_source)}"
        return None

    def render_timeline(
        self,
        session: Session,
        events: list[Event],
        diff_mode: DiffMode = DiffMode.LINE,
    ) -> str:
        blocks = [self._render_page_load(session)]
        blocks.extend(self.render_event(event, diff_mode) for event in events)
        return "\n\n".join(blocks)

    def _render_page_load(self, session: Session) -> str:
        title = escape_markdown(session.title)
        return (
            "### 00:00.000 [ACTION] Page Load\n"
            f"Initial page loaded: **{title}**\n\n"
            f"{code_block(f'<title>{title}</title>')}"
        )

    def render_event(self, event: Event, diff_mode: DiffMode = DiffMode.LINE) -> str:
        """One timeline block: header line, description, element snapshot."""
        time = format_relative_time(event.timestamp)
        label = EVENT_TYPE_LABELS.get(event.type, f"[{_type_name(event)}]")

        block = f"### {time} {label}\n{self.describe_event(event, diff_mode)}"

        fragment = self._render_dom_fragment(event)
        if fragment:
            block += f"\n\n{fragment}"

        return block

    def render_summary(self, events: list[Event]) -> str:
        actions = mutations = errors = navigations = redactions = 0

        for event in events:
            type_name = _type_name(event)
            if type_name.startswith("user:"):
                actions += 1
            elif type_name.startswith("mutation:"):
                mutations += 1
            elif type_name.startswith("error:"):
                errors += 1

            if event.type == EventType.NAVIGATION:
                navigations += 1

            if event.type == EventType.INPUT and isinstance(event.payload, InputPayload):
                if event.payload.is_redacted:
                    redactions += 1

        return SUMMARY_TEMPLATE.format(
            action_count=actions,
            mutation_count=mutations,
            error_count=errors,
            nav_count=navigations,
            redaction_count=redactions,
        )

    def render_reproduction_steps(self, session: Session, events: list[Event]) -> str:
        steps = [f"1. Navigate to `{session.url}`"]

        for event in events:
            step = self.event_to_step(event)
            if step:
                steps.append(f"{len(steps) + 1}. {step}")

        return "## Reproduction Steps\n\n" + "\n".join(steps)

    # =========================================================================
    # Event descriptions
    # =========================================================================

    def describe_event(self, event: Event, diff_mode: DiffMode = DiffMode.LINE) -> str:
        """Natural-language description of an event."""
        target = event.target
        if target.label:
            target_label = f'**"{escape_markdown(truncate(target.label, 50))}"**'
        else:
            target_label = f"**{target.tag_name}**"
        selector = f"(`{target.css_selector}`)"

        match event.type, event.payload:
            case EventType.CLICK, ClickPayload() as payload:
                description = f"User clicked {target_label} {selector}"
                held = payload.modifiers.held
                if held:
                    description += f" with {'+'.join(held)}"
                return description

            case EventType.INPUT, InputPayload() as payload:
                field_name = target.label or "input field"
                description = f'User typed in **"{escape_markdown(field_name)}"** {selector}'
                if payload.is_redacted:
                    description += f"\n\n**Value:** `{payload.value}` *(redacted)*"
                elif payload.value:
                    description += f"\n\n**Value:** `{escape_markdown(truncate(payload.value, 100))}`"
                return description

            case (EventType.FOCUS | EventType.BLUR), FocusPayload() as payload:
                action = "focused on" if payload.focused else "left"
                return f"User {action} {target_label} {selector}"

            case EventType.SCROLL, ScrollPayload() as payload:
                return f"Scrolled to position ({_number(payload.scroll_x)}, {_number(payload.scroll_y)})"

            case EventType.NAVIGATION, NavigationPayload() as payload:
                return f"Navigated to: `{payload.url}` ({payload.navigation_type.value})"

            case (EventType.MUTATION_ADD | EventType.MUTATION_REMOVE), MutationPayload() as payload:
                added = event.type == EventType.MUTATION_ADD
                count = len(payload.added_nodes if added else payload.removed_nodes)
                plural = "" if count == 1 else "s"
                where = "added to" if added else "removed from"
                description = f"{count} element{plural} {where} `{target.css_selector}`"

                diff_block = self.render_mutation_diff(payload, added, diff_mode)
                if diff_block:
                    description += f"\n\n{diff_block}"
                return description

            case EventType.MUTATION_ATTRIBUTE, MutationPayload() as payload:
                diff_content = format_attribute_diff(
                    payload.attribute_name or "unknown",
                    payload.old_value or "",
                    payload.new_value or "",
                )
                return (
                    f"Attribute `{payload.attribute_name}` changed on {target_label}\n\n"
                    f"{code_block(diff_content, 'diff')}"
                )

            case EventType.MUTATION_TEXT, MutationPayload() as payload:
                description = f"Text content changed in {target_label}"
                diff_content = format_unified_diff(payload.old_value or "", payload.new_value or "")
                if diff_content:
                    description += f"\n\n{code_block(diff_content, 'diff')}"
                return description

            case (EventType.JS_ERROR | EventType.CONSOLE_ERROR), ErrorPayload() as payload:
                kind = "JavaScript error" if event.type == EventType.JS_ERROR else "Console error"
                description = f"{kind}: `{truncate(payload.message, 200)}`"
                if payload.source:
                    location = payload.source
                    if payload.lineno is not None:
                        location += f":{payload.lineno}"
                        if payload.colno is not None:
                            location += f":{payload.colno}"
                    description += f" at `{location}`"
                if payload.stack:
                    description += f"\n\n{code_block(truncate(payload.stack, self.options.max_fragment_length), 'text')}"
                return description

            case _:
                return f"Event: {_type_name(event)}"

    def render_mutation_diff(
        self,
        payload: MutationPayload,
        added: bool,
        diff_mode: DiffMode = DiffMode.LINE,
    ) -> Optional[str]:
        """Diff block for an add/remove mutation.

        Uses the parent before/after HTML in line mode; otherwise, or when
        the parent diff is empty, lists each fragment with +/- prefixes.
        """
        if diff_mode == DiffMode.LINE and payload.parent_html_before and payload.parent_html_after:
            diff_content = format_unified_diff(payload.parent_html_before, payload.parent_html_after)
            if diff_content:
                return code_block(diff_content, "diff")

        nodes = payload.added_nodes if added else payload.removed_nodes
        if not nodes:
            return None

        prefix_lines = format_added_diff if added else format_removed_diff
        diff_content = "\n".join(
            prefix_lines(truncate_fragment(node.html, self.options.max_fragment_length))
            for node in nodes
        )
        return code_block(diff_content, "diff")

    def _render_dom_fragment(self, event: Event) -> Optional[str]:
        if event.dom_snapshot is None:
            return None

        html = event.dom_snapshot.html
        if not html or len(html) < self.options.min_fragment_length:
            return None

        return f"**Element:**\n{code_block(truncate_fragment(html, self.options.max_fragment_length))}"

    # =========================================================================
    # Reproduction steps
    # =========================================================================

    def event_to_step(self, event: Event) -> Optional[str]:
        """Reproduction step for an event, or None when it has no step.

        Input steps never echo an unredacted value.
        """
        target_label = truncate(event.target.label or event.target.css_selector, 30)

        match event.type, event.payload:
            case EventType.CLICK, _:
                return f'Click "{target_label}"'

            case EventType.INPUT, InputPayload() as payload:
                if payload.is_redacted:
                    return f'Fill "{target_label}" with `{payload.value}`'
                return f'Fill "{target_label}" with value'

            case EventType.NAVIGATION, NavigationPayload() as payload:
                return f"Observe navigation to `{payload.url}`"

            case EventType.MUTATION_ADD, _:
                return f'Observe new element in "{target_label}"'

            case EventType.MUTATION_REMOVE, _:
                return f'Observe element removed from "{target_label}"'

            case _:
                return None


def export_session(
    session: Session,
    events: list[Event],
    options: Optional[ExportOptions] = None,
) -> str:
    """Convenience function to render a transcript."""
    return DocumentExporter(options).export(session, events)
