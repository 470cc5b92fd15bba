import re

_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_for_forms(text: str | None) -> str:
    """Single-line form of `text`: every whitespace run, line breaks included, becomes one space."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()
