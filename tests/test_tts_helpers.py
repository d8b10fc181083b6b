from __future__ import annotations

import pytest

from world_in_ink.modules.assistant.tts import clamp_speed, split_text_into_chunks, strip_html_for_tts, truncate_for_tts


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(1, 1.0), (10, 4.0), (0, 0.25), (-3, 0.25), ("1.5", 1.5), ("fast", 1.0), (None, 1.0), (float("nan"), 1.0)],
)
def test_clamp_speed(raw, expected) -> None:
    assert clamp_speed(raw) == expected


def test_truncate_for_tts_only_cuts_long_text() -> None:
    assert truncate_for_tts("short", 10) == "short"
    assert truncate_for_tts("x" * 15, 10) == "x" * 10


def test_strip_html_for_tts() -> None:
    html = "<p>Tom &amp; Jerry&nbsp;ran</p>\n<p>&quot;Fast&quot; &lt;really&gt;</p>"
    assert strip_html_for_tts(html) == 'Tom & Jerry ran "Fast" <really>'


def test_split_prefers_sentence_end() -> None:
    text = "a" * 30 + ". " + "b" * 30
    assert split_text_into_chunks(text, max_chars=40) == ["a" * 30 + ".", "b" * 30]


def test_split_falls_back_to_space() -> None:
    text = "word " * 20
    chunks = split_text_into_chunks(text.strip(), max_chars=22)
    assert all(len(chunk) <= 22 for chunk in chunks)
    assert " ".join(chunks).split() == ["word"] * 20


def test_split_cuts_hard_without_separators() -> None:
    assert split_text_into_chunks("x" * 100, max_chars=40) == ["x" * 40, "x" * 40, "x" * 20]


def test_split_short_text_is_single_chunk() -> None:
    assert split_text_into_chunks("tiny", max_chars=40) == ["tiny"]
    assert split_text_into_chunks("", max_chars=40) == []
