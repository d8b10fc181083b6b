from __future__ import annotations

import math
import re

VALID_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
DEFAULT_VOICE = "nova"
MAX_TTS_CHARS = 4000
MIN_SPEED = 0.25
MAX_SPEED = 4.0

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
)


def clamp_speed(speed: object) -> float:
    """Coerce to a number (1.0 when not numeric) and clamp into [0.25, 4.0]."""
    try:
        value = float(speed)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        value = 1.0
    if math.isnan(value):
        value = 1.0
    return max(MIN_SPEED, min(MAX_SPEED, value))


def truncate_for_tts(text: str, max_chars: int = MAX_TTS_CHARS) -> str:
    return text[:max_chars] if len(text) > max_chars else text


def strip_html_for_tts(html: str) -> str:
    text = _TAG_RE.sub("", html)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return _WS_RE.sub(" ", text).strip()


def split_text_into_chunks(text: str, max_chars: int = MAX_TTS_CHARS) -> list[str]:
    """Split long narration into provider-sized pieces.

    Each cut prefers the last sentence end inside the window, then the last
    newline, then the last space, taking a candidate only when it sits past
    the middle of the window; otherwise the window is cut hard.
    """
    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_chars:
            chunks.append(remaining)
            break

        break_point = max_chars
        for separator in (".", "\n", " "):
            index = remaining.rfind(separator, 0, max_chars + 1)
            if index > max_chars * 0.5:
                break_point = index + 1
                break

        chunks.append(remaining[:break_point].strip())
        remaining = remaining[break_point:].strip()
    return chunks
