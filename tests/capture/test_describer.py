"""Tests for ElementDescriber."""

import pytest
from bs4 import BeautifulSoup, Comment, NavigableString

from domscribe.capture.describer import ElementDescriber
from domscribe.recording.models import BoundingBox


class TestDescribe:
    """Tests for describe()."""

    def test_input_with_id(self, page, describer):
        descriptor = describer.describe(page.find(id="email"))

        assert descriptor.tag_name == "input"
        assert descriptor.id == "email"
        assert descriptor.role == "textbox"
        assert descriptor.label == "you@example.com"
        assert descriptor.css_selector == "#email"
        assert descriptor.xpath == '//*[@id="email"]'
        assert descriptor.bounding_rect is None

    def test_input_wrapped_in_label(self, page, describer):
        descriptor = describer.describe(page.find("input", attrs={"name": "phone"}))

        assert descriptor.label == "Phone"
        assert descriptor.css_selector == "#contact-form > label:nth-of-type(2) > input"
        assert descriptor.xpath == "/html[1]/body[1]/form[1]/label[2]/input[1]"

    def test_unlabelled_password_input(self, page, describer):
        descriptor = describer.describe(page.find("input", attrs={"type": "password"}))

        assert descriptor.label is None
        assert descriptor.role == "textbox"
        assert descriptor.css_selector == "#contact-form > input:nth-of-type(2)"
        assert descriptor.xpath == "/html[1]/body[1]/form[1]/input[2]"

    def test_list_item_uses_first_two_classes(self, page, describer):
        second = page.find_all("li")[1]

        descriptor = describer.describe(second)

        assert descriptor.role == "listitem"
        assert descriptor.label == "Two"
        assert descriptor.css_selector == "ul.items.list > li:nth-of-type(2)"
        assert descriptor.xpath == "/html[1]/body[1]/ul[1]/li[2]"

    def test_link(self, page, describer):
        descriptor = describer.describe(page.find("a"))

        assert descriptor.role == "link"
        assert descriptor.label == "Home"
        assert descriptor.css_selector == "nav.top-nav.main > a:nth-of-type(1)"

    def test_button_prefers_aria_label(self, page, describer):
        descriptor = describer.describe(page.find("button"))

        assert descriptor.role == "button"
        assert descriptor.label == "Submit"
        assert descriptor.css_selector == "#submit-btn"

    def test_classes_are_copied(self, page, describer):
        descriptor = describer.describe(page.find("ul"))

        assert descriptor.classes == ["items", "list", "extra"]
        assert descriptor.role == "list"

    def test_body_selector(self, page, describer):
        descriptor = describer.describe(page.body)

        assert descriptor.css_selector == "body"
        assert descriptor.xpath == "/html[1]/body[1]"

    def test_escapes_identifiers(self, describer):
        soup = BeautifulSoup('<div id="a:b">x</div>', "html.parser")

        assert describer.describe(soup.div).css_selector == "#a\\:b"


class TestNonElements:
    """Tests for nodes that are not elements."""

    def test_document(self, page, describer):
        descriptor = describer.describe(page)

        assert descriptor.tag_name == "#document"
        assert descriptor.css_selector == ""
        assert descriptor.xpath == ""

    def test_text_node(self, page, describer):
        text = page.find("li").string

        assert describer.describe(text).tag_name == "#text"

    def test_comment(self, describer):
        soup = BeautifulSoup("<p><!-- note --></p>", "html.parser")
        comment = soup.find(string=lambda s: isinstance(s, Comment))

        assert describer.describe(comment).tag_name == "#comment"

    def test_unknown_object(self, describer):
        assert describer.describe(None).tag_name == "unknown"


class TestLabels:
    """Tests for the label fallback chain."""

    def test_labelled_by_joins_referenced_text(self, describer):
        soup = BeautifulSoup(
            '<span id="first">Billing</span><span id="second">ZIP</span>'
            '<input aria-labelledby="first missing second">',
            "html.parser",
        )

        assert describer.get_label(soup.input) == "Billing ZIP"

    def test_label_for_attribute(self, describer):
        soup = BeautifulSoup(
            '<label for="q">  Search   terms </label><input id="q">', "html.parser"
        )

        assert describer.get_label(soup.input) == "Search terms"

    def test_title_before_placeholder(self, describer):
        soup = BeautifulSoup('<input title="Name" placeholder="Jane">', "html.parser")

        assert describer.get_label(soup.input) == "Name"

    def test_alt_text(self, describer):
        soup = BeautifulSoup('<img alt="Logo" src="/logo.png">', "html.parser")

        assert describer.get_label(soup.img) == "Logo"

    def test_long_visible_text_is_cut(self, describer):
        soup = BeautifulSoup(f"<p>{'word ' * 20}</p>", "html.parser")

        label = describer.get_label(soup.p)

        assert len(label) == 50
        assert label.endswith("...")

    def test_explicit_role_wins(self, describer):
        soup = BeautifulSoup('<div role="tab">Tab</div>', "html.parser")

        assert describer.get_role(soup.div) == "tab"

    @pytest.mark.parametrize("input_type,role", [
        ("checkbox", "checkbox"),
        ("search", "searchbox"),
        ("submit", "button"),
        ("color", "textbox"),
    ])
    def test_input_roles(self, describer, input_type, role):
        soup = BeautifulSoup(f'<input type="{input_type}">', "html.parser")

        assert describer.get_role(soup.input) == role


class TestBoundingRect:
    """Tests for layout lookups."""

    def test_layout_values_are_rounded(self, page):
        describer = ElementDescriber(layout=lambda element: (10.4, 20.6, 100.2, 30.4))

        descriptor = describer.describe(page.find("button"))

        assert descriptor.bounding_rect == BoundingBox(x=10, y=21, width=100, height=30)

    def test_layout_failure_yields_none(self, page):
        def detached(element):
            raise RuntimeError("element not rendered")

        describer = ElementDescriber(layout=detached)

        assert describer.describe(page.find("button")).bounding_rect is None


class TestCaptureFragment:
    """Tests for capture_fragment()."""

    def test_element(self, page, describer):
        fragment = describer.capture_fragment(page.find("ul"))

        assert fragment.html == '<ul class="items list extra"><li>One</li><li>Two</li></ul>'
        assert fragment.text == "OneTwo"
        assert fragment.attributes == {"class": "items list extra"}

    def test_element_is_sanitized(self, describer):
        soup = BeautifulSoup('<div onclick="x()"><script>bad()</script>ok</div>', "html.parser")

        fragment = describer.capture_fragment(soup.div)

        assert fragment.html == "<div>ok</div>"
        assert fragment.attributes == {}

    def test_long_element_is_truncated(self, describer):
        soup = BeautifulSoup(f"<p>{'a' * 300}</p>", "html.parser")

        fragment = describer.capture_fragment(soup.p, max_length=100)

        assert fragment.html.endswith("<!-- truncated -->")
        assert len(fragment.text) == 300

    def test_text_node_is_escaped(self, describer):
        fragment = describer.capture_fragment(NavigableString(" a < b "))

        assert fragment.html == "a &lt; b"
        assert fragment.text == "a < b"

    def test_none(self, describer):
        assert describer.capture_fragment(None) is None

    def test_document_yields_empty_fragment(self, page, describer):
        fragment = describer.capture_fragment(page)

        assert fragment.html == ""
        assert fragment.text == ""
