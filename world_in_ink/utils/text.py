from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_tags(html: str | None) -> str:
    return _TAG_RE.sub("", html or "")


def count_words(html: str | None) -> int:
    """Whitespace-delimited token count of the text with markup removed."""
    return len([token for token in _WS_RE.split(strip_tags(html)) if token])


def preview_text(html: str | None, limit: int = 200) -> str:
    plain = strip_tags(html).replace("&nbsp;", " ").strip()
    if len(plain) > limit:
        return plain[:limit] + "..."
    return plain
