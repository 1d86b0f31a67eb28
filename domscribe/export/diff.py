"""Line-set diffs for mutation rendering.

Not a minimal-edit diff: lines only in "before" are listed with ``- ``,
then lines only in "after" with ``+ ``, each side in its original order.
"""


def _lines(text: str) -> list[str]:
    return text.split("\n") if text else []


def format_unified_diff(before: str, after: str) -> str:
    """Set-difference diff of two texts.

    Example:
        format_unified_diff("<ul>\\n</ul>", "<ul>\\n<li>a</li>\\n</ul>")
        # '+ <li>a</li>'
    """
    before_lines = _lines(before)
    after_lines = _lines(after)
    before_set = set(before_lines)
    after_set = set(after_lines)

    result = [f"- {line}" for line in before_lines if line not in after_set]
    result.extend(f"+ {line}" for line in after_lines if line not in before_set)
    return "\n".join(result)


def format_added_diff(html: str) -> str:
    return "\n".join(f"+ {line}" for line in _lines(html))


def format_removed_diff(html: str) -> str:
    return "\n".join(f"- {line}" for line in _lines(html))


def format_attribute_diff(name: str, old_value: str, new_value: str) -> str:
    return f'- {name}="{old_value}"\n+ {name}="{new_value}"'
