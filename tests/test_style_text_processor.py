from __future__ import annotations

import pytest

from world_in_ink.modules.style import text_processor as tp


def test_split_sentences_keeps_terminators() -> None:
    assert tp.split_sentences("Hello there. How are you? Fine!") == ["Hello there.", "How are you?", "Fine!"]


def test_split_paragraphs_and_words() -> None:
    assert tp.split_paragraphs("a\n\n  b\n \n\nc") == ["a", "b", "c"]
    assert tp.split_words("Don't stop, NOW!") == ["don", "t", "stop", "now"]


def test_basic_metrics_from_html() -> None:
    metrics = tp.basic_metrics("<p>One two three. Four five six.</p>\n\n<p>Seven eight nine.</p>")
    assert metrics.total_words == 9
    assert metrics.total_sentences == 3
    assert metrics.total_paragraphs == 2
    assert metrics.avg_words_per_sentence == 3.0
    assert metrics.avg_sentences_per_paragraph == 1.5
    assert metrics.vocabulary_richness == 1.0


def test_basic_metrics_empty_text() -> None:
    metrics = tp.basic_metrics("")
    assert metrics.total_words == 0
    assert metrics.avg_words_per_sentence == 0.0
    assert metrics.vocabulary_richness == 0.0


@pytest.mark.parametrize(
    ("text", "voice"),
    [
        ("I walked and I saw my dog. We ran.", "first-person"),
        ("You open the door and your hands shake.", "second-person"),
        ("She said he was late. They laughed at her.", "third-person-limited"),
    ],
)
def test_detect_narrative_voice(text: str, voice: str) -> None:
    result = tp.detect_narrative_voice(text)
    assert result.voice == voice
    assert result.confidence == 1.0


def test_narrative_voice_without_pronouns() -> None:
    result = tp.detect_narrative_voice("Rain. Thunder. Silence.")
    assert (result.voice, result.confidence) == ("third-person-limited", 0.5)


def test_detect_tense() -> None:
    assert tp.detect_tense("He was here. She had gone. They said so.").tense == "past"
    assert tp.detect_tense("She is here and they are happy and it has begun.").tense == "present"
    mixed = tp.detect_tense("It was cold and it is cold and it will be cold.")
    assert mixed.tense == "mixed"
    assert mixed.confidence == 0.7
    assert mixed.future == pytest.approx(1 / 3)
    assert tp.detect_tense("").confidence == 0.5


def test_analyze_dialogue_straight_and_curly_quotes() -> None:
    straight = tp.analyze_dialogue('He said "come here now" and left.')
    assert straight.segments == ["come here now"]
    assert straight.percentage == pytest.approx(3 / 7 * 100)
    assert straight.has_dialogue is True

    curly = tp.analyze_dialogue("“Hi there” she whispered.")
    assert curly.segments == ["Hi there"]

    assert tp.analyze_dialogue("No one spoke.").has_dialogue is False


def test_common_phrases_require_three_occurrences() -> None:
    phrases = tp.common_phrases("The cat sat. The cat sat. The cat sat.")
    assert phrases == [("the cat", 3), ("cat sat", 3), ("the cat sat", 3)]


def test_favorite_words_skip_stop_words_and_short_words() -> None:
    assert tp.favorite_words("The dragon dragon castle and the moon sky") == [
        ("dragon", 2),
        ("castle", 1),
        ("moon", 1),
    ]


def test_vocabulary_level() -> None:
    assert tp.vocabulary_level("").level == "basic"
    assert tp.vocabulary_level("a cat sat on the mat").level == "basic"
    assert tp.vocabulary_level("extraordinary magnificent incomprehensible").level == "literary"


def test_representative_examples() -> None:
    text = "\n\n".join(f"p{index}" for index in range(1, 7))
    assert tp.representative_examples(text, "opening", 2) == ["p1", "p2"]
    assert tp.representative_examples(text, "emotional", 2) == ["p1", "p3"]
    assert tp.representative_examples("p1\n\np2", "emotional", 3) == []

    talk = 'Quiet night.\n\n"Wake up," she said.\n\n“Go away.”'
    assert tp.representative_examples(talk, "dialogue", 3) == ['"Wake up," she said.', "“Go away.”"]

    rich = " ".join(["magnificent"] * 31)
    assert tp.representative_examples(f"short words here\n\n{rich}", "descriptive", 2) == [rich]
