"""HTML sanitization for captured DOM fragments.

Every fragment that leaves the capture layer goes through here first:
scripts, styles and embedded content are dropped, unknown tags are unwrapped
(their content kept), and only an allow-list of attributes survives.
"""

from bs4 import BeautifulSoup, Comment, Tag

ALLOWED_TAGS = {
    "div", "span", "p", "a", "button", "input", "textarea", "select", "option",
    "form", "label", "fieldset", "legend", "table", "thead", "tbody", "tr", "td", "th",
    "ul", "ol", "li", "dl", "dt", "dd", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "footer", "nav", "main", "article", "section", "aside",
    "img", "figure", "figcaption", "video", "audio", "source",
    "strong", "em", "b", "i", "u", "s", "mark", "small", "sub", "sup",
    "br", "hr", "pre", "code", "blockquote", "cite", "abbr", "time",
}

ALLOWED_ATTRIBUTES = {
    "class", "id", "href", "src", "alt", "title", "type", "name", "value",
    "placeholder", "disabled", "readonly", "checked", "selected",
    "role", "aria-label", "aria-labelledby", "aria-describedby", "aria-hidden",
    "data-testid", "data-cy", "data-test",
    "for", "action", "method", "target", "rel",
    "width", "height", "colspan", "rowspan",
}

FORBIDDEN_TAGS = {"script", "style", "iframe", "object", "embed", "link", "meta", "noscript"}

FORBIDDEN_ATTRIBUTES = {
    "onclick", "ondblclick", "onmousedown", "onmouseup", "onmouseover",
    "onmouseout", "onmousemove", "onkeydown", "onkeyup", "onkeypress",
    "onfocus", "onblur", "onchange", "onsubmit", "onreset", "onload",
    "onerror", "onabort", "onscroll", "onresize",
    "style",
}

UNSAFE_URL_SCHEMES = ("javascript:", "data:")

TRUNCATION_MARKER = "<!-- truncated -->"


def _attribute_value(value) -> str:
    # bs4 stores multi-valued attributes (class, rel) as lists
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return "" if value is None else str(value)


def sanitize_attributes(attrs: dict) -> dict[str, str]:
    """Filter an attribute map down to safe, allowed attributes."""
    result: dict[str, str] = {}

    for key, raw in attrs.items():
        name = key.lower()
        if name in FORBIDDEN_ATTRIBUTES:
            continue

        value = _attribute_value(raw)
        if name in ("href", "src") and value.strip().lower().startswith(UNSAFE_URL_SCHEMES):
            continue

        if name in ALLOWED_ATTRIBUTES or name.startswith("aria-"):
            result[key] = value

    return result


def sanitize_html(dirty: str) -> str:
    """Sanitize an HTML string, removing scripts and dangerous content."""
    if not dirty:
        return ""

    soup = BeautifulSoup(dirty, "html.parser")

    for tag in soup.find_all(sorted(FORBIDDEN_TAGS)):
        if not tag.decomposed:
            tag.decompose()

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue
        tag.attrs = sanitize_attributes(tag.attrs)

    return str(soup)


def sanitize_and_truncate(dirty: str, max_length: int) -> str:
    """Sanitize HTML and cut it to max_length characters.

    Cuts at the last tag end when one falls in the final fifth of the
    budget, and appends a truncation marker.
    """
    clean = sanitize_html(dirty)

    if max_length <= 0 or len(clean) <= max_length:
        return clean

    truncated = clean[:max_length]
    last_tag_end = truncated.rfind(">")

    if last_tag_end > max_length * 0.8:
        return truncated[: last_tag_end + 1] + "\n" + TRUNCATION_MARKER

    return truncated + TRUNCATION_MARKER


def extract_text(html: str) -> str:
    """Extract whitespace-normalized text from HTML."""
    clean = sanitize_html(html)
    text = BeautifulSoup(clean, "html.parser").get_text(" ")
    return " ".join(text.split())


def outer_html(node) -> str:
    """Serialize a node, including its own tag when it is an element."""
    if isinstance(node, Tag):
        return node.decode()
    return "" if node is None else str(node)
