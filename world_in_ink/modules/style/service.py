"""Per-user writing-style profiles: eligibility, analysis, storage and
style-conditioned generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from world_in_ink.db.models import Story, StyleExample, WritingStyle
from world_in_ink.errors import NotFoundError
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.style import text_processor as tp
from world_in_ink.modules.style.ai_analyzer import analyze_style_with_ai, generate_in_user_style
from world_in_ink.utils.time import utc_now_naive

logger = logging.getLogger(__name__)

MIN_STORIES = 2
MIN_TOTAL_WORDS = 3000
MIN_GENERATION_CONFIDENCE = 0.5
REUSE_CONFIDENCE = 0.7
REUSE_WINDOW = timedelta(days=7)
AI_SAMPLE_STORIES = 5
EXAMPLE_TEXT_LIMIT = 1000
PROFILE_EXAMPLE_LIMIT = 10


class StyleError(ValueError):
    """Style operation refused; ``code`` is the wire error code."""

    def __init__(self, code: str, message: str, **extra):
        super().__init__(message)
        self.code = code
        self.message = message
        self.extra = extra


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    current_stories: int
    current_words: int
    message: str

    def needs_more_data(self) -> dict:
        return {
            "currentStories": self.current_stories,
            "currentWords": self.current_words,
            "minStoriesNeeded": MIN_STORIES,
            "minWordsNeeded": MIN_TOTAL_WORDS,
        }


@dataclass(frozen=True)
class ExampleCandidate:
    text: str
    example_type: str
    story_title: str
    score: float


def check_eligibility(db: Session, *, user_id: str) -> Eligibility:
    """All of the user's stories count, drafts included."""
    word_counts = db.execute(select(Story.word_count).where(Story.author_id == user_id)).scalars().all()
    stories = len(word_counts)
    words = int(sum(word_counts))

    if stories < MIN_STORIES:
        message = f"You need at least {MIN_STORIES} stories. You currently have {stories}."
    elif words < MIN_TOTAL_WORDS:
        message = f"You need at least {MIN_TOTAL_WORDS} words in total. You currently have {words}."
    else:
        return Eligibility(True, stories, words, "You have enough data to analyze your style.")
    return Eligibility(False, stories, words, message)


def get_profile(db: Session, *, user_id: str) -> WritingStyle | None:
    return db.execute(select(WritingStyle).where(WritingStyle.user_id == user_id)).scalar_one_or_none()


def calculate_confidence(
    *,
    stories: int,
    total_words: int,
    voice_confidence: float,
    tense_confidence: float,
    has_dialogue: bool,
) -> float:
    story_score = min(stories / 10, 1) * 0.3
    word_score = min(total_words / 20000, 1) * 0.3
    detection_score = (voice_confidence + tense_confidence) / 2 * 0.3
    variety_score = 0.1 if has_dialogue else 0.0
    return min(story_score + word_score + detection_score + variety_score, 1.0)


def _title_for(text: str, stories: list[Story], plain: list[str]) -> str:
    for story, content in zip(stories, plain):
        if text in content:
            return story.title
    return "Unknown"


def extract_style_examples(stories: list[Story], plain: list[str], combined: str) -> list[ExampleCandidate]:
    examples: list[ExampleCandidate] = []
    if stories:
        for text in tp.representative_examples(plain[0], "opening", 2):
            examples.append(ExampleCandidate(text, "OPENING", stories[0].title, 0.9))
    for kind, example_type, score in (
        ("descriptive", "DESCRIPTIVE", 0.8),
        ("dialogue", "DIALOGUE", 0.8),
        ("emotional", "EMOTIONAL", 0.7),
    ):
        for text in tp.representative_examples(combined, kind, 2):
            examples.append(ExampleCandidate(text, example_type, _title_for(text, stories, plain), score))
    return examples


def _is_fresh(profile: WritingStyle) -> bool:
    if profile.confidence <= REUSE_CONFIDENCE:
        return False
    return utc_now_naive() - profile.last_analyzed < REUSE_WINDOW


def analyze_user_style(
    db: Session,
    client: OpenAIClient,
    *,
    user_id: str,
    model: str,
    force: bool = False,
) -> WritingStyle:
    """Build or refresh the user's style profile.

    A confident profile analyzed within the last week is returned unchanged
    unless ``force`` is set.
    """
    existing = get_profile(db, user_id=user_id)
    if existing is not None and not force and _is_fresh(existing):
        return existing

    eligibility = check_eligibility(db, user_id=user_id)
    if not eligibility.eligible:
        raise StyleError("INSUFFICIENT_DATA", eligibility.message, needsMoreData=eligibility.needs_more_data())

    stories = list(
        db.execute(select(Story).where(Story.author_id == user_id).order_by(Story.updated_at.desc())).scalars().all()
    )
    plain = [tp.strip_html(story.content) for story in stories]
    combined = "\n\n".join(plain)
    logger.info(
        "analyzing style for user %s with %d stories, %d words",
        user_id,
        len(stories),
        eligibility.current_words,
    )

    metrics = tp.basic_metrics(combined)
    voice = tp.detect_narrative_voice(combined)
    tense = tp.detect_tense(combined)
    dialogue = tp.analyze_dialogue(combined)
    vocabulary = tp.vocabulary_level(combined)
    phrases = dict(tp.common_phrases(combined))
    favorites = dict(tp.favorite_words(combined)[:20])

    ai = analyze_style_with_ai(
        client,
        model=model,
        texts=plain[:AI_SAMPLE_STORIES],
        avg_sentence_length=metrics.avg_words_per_sentence,
        avg_paragraph_length=metrics.avg_sentences_per_paragraph,
        vocabulary_level=vocabulary.level,
        narrative_voice=voice.voice,
        preferred_tense=tense.tense,
    )
    confidence = calculate_confidence(
        stories=len(stories),
        total_words=eligibility.current_words,
        voice_confidence=voice.confidence,
        tense_confidence=tense.confidence,
        has_dialogue=dialogue.has_dialogue,
    )

    profile = existing or WritingStyle(user_id=user_id, avoided_words=[], is_active=True)
    profile.narrative_voice = voice.voice
    profile.preferred_tense = tense.tense
    profile.avg_sentence_length = metrics.avg_words_per_sentence
    profile.avg_paragraph_length = metrics.avg_sentences_per_paragraph
    profile.vocabulary_level = vocabulary.level
    profile.dominant_tones = ai.tones
    profile.writing_pace = ai.writing_pace
    profile.descriptive_density = ai.descriptive_density
    profile.signature_phrases = phrases
    profile.favorite_words = favorites
    profile.dialogue_style = ai.dialogue_style
    profile.dialogue_frequency = dialogue.percentage
    profile.similar_authors = ai.similar_authors
    profile.literary_movement = ai.literary_movement
    profile.analyzed_stories = len(stories)
    profile.total_words_analyzed = eligibility.current_words
    profile.confidence = confidence
    profile.last_analyzed = utc_now_naive()
    profile.examples = [
        StyleExample(
            text=candidate.text[:EXAMPLE_TEXT_LIMIT],
            example_type=candidate.example_type,
            story_title=candidate.story_title,
            context=f"From story: {candidate.story_title}",
            word_count=len(candidate.text.split()),
            relevance_score=candidate.score,
        )
        for candidate in extract_style_examples(stories, plain, combined)
    ]
    if existing is None:
        db.add(profile)
    db.flush()
    logger.info("style analysis complete for user %s, confidence %.2f", user_id, confidence)
    return profile


def generate_with_style(
    db: Session,
    client: OpenAIClient,
    *,
    user_id: str,
    model: str,
    prompt: str,
    context: str,
    max_length: int,
    temperature: float,
) -> tuple[str, float]:
    profile = get_profile(db, user_id=user_id)
    if profile is None:
        raise StyleError(
            "NO_STYLE_PROFILE",
            "You must analyze your style before generating personalized text",
        )
    if profile.confidence < MIN_GENERATION_CONFIDENCE:
        raise StyleError(
            "LOW_CONFIDENCE",
            "Your style profile does not have enough confidence yet. Write more stories and re-analyze.",
        )

    logger.info("generating for user %s with style confidence %.2f", user_id, profile.confidence)
    text = generate_in_user_style(
        client,
        profile,
        model=model,
        prompt=prompt,
        context=context,
        max_length=max_length,
        temperature=temperature,
    )
    return text, profile.confidence


def delete_profile(db: Session, *, user_id: str) -> None:
    profile = get_profile(db, user_id=user_id)
    if profile is None:
        raise NotFoundError("No style profile found. Analyze your stories first.")
    db.delete(profile)
    db.flush()
