"""Tests for ChangeBatcher."""

import pytest
from bs4 import NavigableString

from domscribe.capture.change_batcher import ChangeBatcher
from domscribe.capture.notifications import StructuralChange
from domscribe.recording.models import EventType, MutationType


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def batcher(describer, emitted, context):
    batcher = ChangeBatcher(describer, emitted.append)
    batcher.start(context)
    return batcher


def _append_paragraph(page, text="Thanks!"):
    form = page.find("form")
    paragraph = page.new_tag("p")
    paragraph.string = text
    form.append(paragraph)
    return form, paragraph


class TestBatching:
    """Tests for the micro-batch window."""

    def test_events_wait_for_batch_window(self, page, batcher, emitted, scheduler):
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])

        assert emitted == []
        assert batcher.pending == 1

        scheduler.advance(49)
        assert emitted == []

        scheduler.advance(1)
        assert len(emitted) == 1
        assert batcher.pending == 0

    def test_timestamp_is_delivery_time(self, page, batcher, emitted, scheduler):
        scheduler.advance(20)
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])
        scheduler.advance(50)

        assert emitted[0].timestamp == 20
        assert emitted[0].session_id == "session-1"

    def test_state_captured_at_delivery(self, page, batcher, emitted, scheduler):
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])
        paragraph.string = "Changed later"
        scheduler.advance(50)

        assert emitted[0].payload.added_nodes[0].html == "<p>Thanks!</p>"
        assert "Changed later" not in emitted[0].payload.parent_html_after

    def test_arrival_order_within_batch(self, page, batcher, emitted, scheduler):
        button = page.find("button")
        form, paragraph = _append_paragraph(page)

        batcher.deliver([
            StructuralChange(MutationType.ATTRIBUTES, button, attribute_name="disabled"),
            StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph]),
        ])
        scheduler.advance(50)

        assert [e.type for e in emitted] == [EventType.MUTATION_ATTRIBUTE, EventType.MUTATION_ADD]

    def test_one_timer_per_batch(self, page, batcher, emitted, scheduler):
        button = page.find("button")

        batcher.deliver([StructuralChange(MutationType.ATTRIBUTES, button, attribute_name="id")])
        scheduler.advance(30)
        batcher.deliver([StructuralChange(MutationType.ATTRIBUTES, button, attribute_name="class")])
        scheduler.advance(20)

        assert len(emitted) == 2

    def test_stop_drains_synchronously(self, page, batcher, emitted, scheduler):
        form, paragraph = _append_paragraph(page)
        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])

        batcher.stop()

        assert len(emitted) == 1
        assert scheduler.pending == 0
        assert batcher.observing is False

    def test_deliver_while_stopped_is_ignored(self, page, describer, emitted, scheduler):
        batcher = ChangeBatcher(describer, emitted.append)
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])
        scheduler.advance(100)

        assert emitted == []


class TestClassification:
    """Tests for change classification and payloads."""

    def test_added_element(self, page, batcher, emitted):
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])
        batcher.flush()

        event = emitted[0]
        assert event.type == EventType.MUTATION_ADD
        assert event.target.css_selector == "#contact-form"
        assert event.payload.added_nodes[0].html == "<p>Thanks!</p>"
        assert event.payload.added_nodes[0].text == "Thanks!"
        assert "Thanks!" not in event.payload.parent_html_before
        assert "<p>Thanks!</p>" in event.payload.parent_html_after
        assert "Thanks!" in event.dom_snapshot.html

    def test_removed_element(self, page, batcher, emitted):
        items = page.find("ul")
        first = items.find("li").extract()

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, items, removed_nodes=[first])])
        batcher.flush()

        event = emitted[0]
        assert event.type == EventType.MUTATION_REMOVE
        assert event.payload.removed_nodes[0].html == "<li>One</li>"
        assert "<li>One</li>" in event.payload.parent_html_before
        assert "<li>One</li>" not in event.payload.parent_html_after

    def test_attribute_change_reads_new_value(self, page, batcher, emitted):
        button = page.find("button")
        button["class"] = ["btn", "active"]

        batcher.deliver([StructuralChange(
            MutationType.ATTRIBUTES, button, attribute_name="class", old_value="btn"
        )])
        batcher.flush()

        payload = emitted[0].payload
        assert emitted[0].type == EventType.MUTATION_ATTRIBUTE
        assert payload.attribute_name == "class"
        assert payload.old_value == "btn"
        assert payload.new_value == "btn active"

    def test_removed_attribute_has_no_new_value(self, page, batcher, emitted):
        button = page.find("button")

        batcher.deliver([StructuralChange(
            MutationType.ATTRIBUTES, button, attribute_name="disabled", old_value=""
        )])
        batcher.flush()

        assert emitted[0].payload.new_value is None

    def test_text_change_targets_parent_element(self, page, batcher, emitted):
        item = page.find("li")
        replacement = NavigableString("Uno")
        item.string.replace_with(replacement)

        batcher.deliver([StructuralChange(MutationType.CHARACTER_DATA, replacement, old_value="One")])
        batcher.flush()

        event = emitted[0]
        assert event.type == EventType.MUTATION_TEXT
        assert event.target.tag_name == "li"
        assert event.payload.old_value == "One"
        assert event.payload.new_value == "Uno"

    def test_empty_child_list_is_dropped(self, page, batcher, emitted):
        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, page.find("form"))])
        batcher.flush()

        assert emitted == []

    def test_ignored_tags_are_dropped(self, page, batcher, emitted):
        script = page.new_tag("script")
        page.head.append(script)

        batcher.deliver([StructuralChange(MutationType.ATTRIBUTES, script, attribute_name="src")])
        batcher.flush()

        assert emitted == []

    def test_detached_text_node_is_dropped(self, batcher, emitted):
        batcher.deliver([StructuralChange(MutationType.CHARACTER_DATA, NavigableString("loose"))])
        batcher.flush()

        assert emitted == []

    def test_fragment_count_is_capped(self, page, describer, emitted, context):
        batcher = ChangeBatcher(describer, emitted.append, max_nodes=2)
        batcher.start(context)
        items = page.find("ul")
        added = []
        for text in ("Three", "Four", "Five"):
            item = page.new_tag("li")
            item.string = text
            items.append(item)
            added.append(item)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, items, added_nodes=added)])
        batcher.flush()

        assert [f.text for f in emitted[0].payload.added_nodes] == ["Three", "Four"]

    def test_text_nodes_are_not_fragments(self, page, batcher, emitted):
        form = page.find("form")
        text = NavigableString("note")
        form.append(text)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[text])])
        batcher.flush()

        assert emitted[0].type == EventType.MUTATION_ADD
        assert emitted[0].payload.added_nodes == []

    def test_parent_context_can_be_disabled(self, page, batcher, emitted, session_config):
        session_config.export_config.include_parent_context = False
        form, paragraph = _append_paragraph(page)

        batcher.deliver([StructuralChange(MutationType.CHILD_LIST, form, added_nodes=[paragraph])])
        batcher.flush()

        assert emitted[0].payload.parent_html_before is None
        assert emitted[0].payload.parent_html_after is None
