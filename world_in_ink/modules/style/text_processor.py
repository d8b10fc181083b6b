"""Statistical signals extracted from plain story text.

Everything here is pure and deterministic; the pronoun, tense and stop-word
lists cover both English and Spanish prose.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from world_in_ink.utils.text import strip_tags

_SENTENCE_SPLIT_RE = re.compile(r"([.!?]+\s+|[.!?]+$)")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_DIALOGUE_RE = re.compile(r"“([^”]+)”|\"([^\"]+)\"")

_FIRST_PERSON_RE = re.compile(r"\b(yo|me|mi|mis|nosotros|nuestra|nuestro|i|my|we|our)\b", re.IGNORECASE)
_SECOND_PERSON_RE = re.compile(r"\b(tú|tu|tus|usted|ustedes|you|your)\b", re.IGNORECASE)
_THIRD_PERSON_RE = re.compile(r"\b(él|ella|ellos|ellas|su|sus|he|she|they|his|her|their)\b", re.IGNORECASE)

_PAST_RE = re.compile(r"\b(era|fue|había|hizo|dijo|estaba|tenía|was|were|had|did|said)\b", re.IGNORECASE)
_PRESENT_RE = re.compile(r"\b(es|está|tiene|hace|dice|soy|estoy|is|are|has|have|does|says)\b", re.IGNORECASE)
_FUTURE_RE = re.compile(r"\b(será|estará|tendrá|hará|dirá|will|shall|going to)\b", re.IGNORECASE)

STOP_WORDS = frozenset(
    """
    el la de que y a en un ser se no haber por con su para como estar tener le lo todo
    pero más hacer o poder decir este ir otro ese
    the be to of and in that have i it for not on with he as you do at this but his
    by from they we say her she or an will my
    """.split()
)


@dataclass(frozen=True)
class BasicMetrics:
    total_words: int
    total_sentences: int
    total_paragraphs: int
    avg_words_per_sentence: float
    avg_sentences_per_paragraph: float
    unique_words: int
    vocabulary_richness: float


@dataclass(frozen=True)
class VoiceAnalysis:
    voice: str
    first_person: int
    second_person: int
    third_person: int
    confidence: float


@dataclass(frozen=True)
class TenseAnalysis:
    tense: str
    past: float
    present: float
    future: float
    confidence: float


@dataclass(frozen=True)
class DialogueAnalysis:
    percentage: float
    segments: list[str]

    @property
    def has_dialogue(self) -> bool:
        return bool(self.segments)


@dataclass(frozen=True)
class VocabularyAnalysis:
    level: str
    avg_word_length: float
    long_word_percentage: float


def strip_html(html: str) -> str:
    return strip_tags(html).strip()


def split_sentences(text: str) -> list[str]:
    parts = _SENTENCE_SPLIT_RE.split(text)
    sentences: list[str] = []
    for index in range(0, len(parts), 2):
        delimiter = parts[index + 1] if index + 1 < len(parts) else ""
        sentence = (parts[index] + delimiter).strip()
        if len(sentence) > 2:
            sentences.append(sentence)
    return sentences


def split_paragraphs(text: str) -> list[str]:
    return [paragraph.strip() for paragraph in _PARAGRAPH_SPLIT_RE.split(text) if paragraph.strip()]


def split_words(text: str) -> list[str]:
    return _NON_WORD_RE.sub(" ", text.lower()).split()


def count_words(text: str) -> int:
    return len(split_words(text))


def basic_metrics(text: str) -> BasicMetrics:
    clean = strip_html(text)
    words = split_words(clean)
    sentences = split_sentences(clean)
    paragraphs = split_paragraphs(clean)
    unique = len(set(words))
    return BasicMetrics(
        total_words=len(words),
        total_sentences=len(sentences),
        total_paragraphs=len(paragraphs),
        avg_words_per_sentence=len(words) / len(sentences) if sentences else 0.0,
        avg_sentences_per_paragraph=len(sentences) / len(paragraphs) if paragraphs else 0.0,
        unique_words=unique,
        vocabulary_richness=unique / len(words) if words else 0.0,
    )


def detect_narrative_voice(text: str) -> VoiceAnalysis:
    clean = strip_html(text).lower()
    first = len(_FIRST_PERSON_RE.findall(clean))
    second = len(_SECOND_PERSON_RE.findall(clean))
    third = len(_THIRD_PERSON_RE.findall(clean))
    total = first + second + third
    if total == 0:
        return VoiceAnalysis("third-person-limited", 0, 0, 0, 0.5)

    if first / total > 0.5:
        voice, confidence = "first-person", first / total
    elif second / total > 0.4:
        voice, confidence = "second-person", second / total
    elif third / total > 0.5:
        voice, confidence = "third-person-limited", third / total
    else:
        voice, confidence = "third-person-limited", 0.6
    return VoiceAnalysis(voice, first, second, third, confidence)


def detect_tense(text: str) -> TenseAnalysis:
    clean = strip_html(text).lower()
    past = len(_PAST_RE.findall(clean))
    present = len(_PRESENT_RE.findall(clean))
    future = len(_FUTURE_RE.findall(clean))
    total = past + present + future
    if total == 0:
        return TenseAnalysis("past", 0.0, 0.0, 0.0, 0.5)

    past_ratio = past / total
    present_ratio = present / total
    if past_ratio > 0.6:
        tense, confidence = "past", past_ratio
    elif present_ratio > 0.6:
        tense, confidence = "present", present_ratio
    else:
        tense, confidence = "mixed", 0.7
    return TenseAnalysis(tense, past_ratio, present_ratio, future / total, confidence)


def analyze_dialogue(text: str) -> DialogueAnalysis:
    clean = strip_html(text)
    segments = [match.group(1) or match.group(2) or "" for match in _DIALOGUE_RE.finditer(clean)]
    dialogue_words = sum(count_words(segment) for segment in segments)
    total = count_words(clean)
    return DialogueAnalysis(
        percentage=dialogue_words / total * 100 if total else 0.0,
        segments=segments,
    )


def common_phrases(text: str, min_length: int = 2, max_length: int = 4) -> list[tuple[str, int]]:
    """Top 20 n-grams seen at least three times, most frequent first."""
    words = split_words(strip_html(text))
    counts: Counter[str] = Counter()
    for size in range(min_length, max_length + 1):
        for start in range(len(words) - size + 1):
            counts[" ".join(words[start : start + size])] += 1
    frequent = [(phrase, count) for phrase, count in counts.items() if count >= 3]
    frequent.sort(key=lambda item: item[1], reverse=True)
    return frequent[:20]


def favorite_words(text: str) -> list[tuple[str, int]]:
    words = split_words(strip_html(text))
    counts = Counter(word for word in words if word not in STOP_WORDS and len(word) > 3)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:30]


def vocabulary_level(text: str) -> VocabularyAnalysis:
    words = split_words(strip_html(text))
    if not words:
        return VocabularyAnalysis("basic", 0.0, 0.0)

    avg_length = sum(len(word) for word in words) / len(words)
    long_pct = sum(1 for word in words if len(word) > 7) / len(words) * 100
    if avg_length < 4.5 and long_pct < 10:
        level = "basic"
    elif avg_length < 5.5 and long_pct < 20:
        level = "intermediate"
    elif avg_length < 6.5 and long_pct < 30:
        level = "advanced"
    else:
        level = "literary"
    return VocabularyAnalysis(level, avg_length, long_pct)


def _is_descriptive(paragraph: str) -> bool:
    words = split_words(paragraph)
    if not words:
        return False
    return sum(len(word) for word in words) / len(words) > 5 and len(words) > 30


def representative_examples(text: str, kind: str, count: int = 3) -> list[str]:
    """Paragraphs typical of ``kind``: opening, dialogue, descriptive or emotional."""
    paragraphs = split_paragraphs(strip_html(text))
    if kind == "opening":
        return paragraphs[:count]
    if kind == "dialogue":
        return [p for p in paragraphs if '"' in p or "“" in p][:count]
    if kind == "descriptive":
        return [p for p in paragraphs if _is_descriptive(p)][:count]

    step = len(paragraphs) // (count + 1)
    if step == 0:
        return []
    return [p for index, p in enumerate(paragraphs) if index % step == 0][:count]
