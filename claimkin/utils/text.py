import re

_tag_re = re.compile(r"<[^>]*>")


def strip_html(html) -> str:
    """Campaign titles may carry rich-text markup; plain text for CSVs and emails."""
    if not html:
        return ""
    return _tag_re.sub("", html)


def clean(value):
    """Trim strings; empty strings become None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value
