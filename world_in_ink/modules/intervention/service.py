"""Character interventions: decide whether one of the author's characters
speaks up about the text just written, and generate what it says."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from world_in_ink.db.models import Character, Story
from world_in_ink.modules.intervention.prompts import (
    DEFAULT_PERSONALITY,
    build_character_system_prompt,
    build_intervention_prompt,
)
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.structured import validate_structured_output
from world_in_ink.utils.time import utc_now_naive

logger = logging.getLogger(__name__)

COOLDOWN_PERIODS = {
    "low": timedelta(minutes=5),
    "medium": timedelta(minutes=2),
    "high": timedelta(seconds=30),
}

INTERVENTION_THRESHOLDS = {
    "low": 0.8,
    "medium": 0.5,
    "high": 0.3,
}

WORD_CONFIDENCE = 0.9
MENTION_CONFIDENCE = 1.0
TOPIC_CONFIDENCE = 0.8

TOPIC_KEYWORDS: dict[str, list[str]] = {
    "love": ["amor", "love", "corazón", "heart", "beso", "kiss", "romance", "enamorado"],
    "danger": ["peligro", "danger", "muerte", "death", "miedo", "fear", "amenaza", "threat"],
    "betrayal": ["traición", "betrayal", "mentira", "lie", "engaño", "deceive", "secreto", "secret"],
    "adventure": ["aventura", "adventure", "viaje", "journey", "explorar", "explore", "descubrir"],
    "mystery": ["misterio", "mystery", "extraño", "strange", "oculto", "hidden", "enigma"],
    "conflict": ["pelea", "fight", "conflicto", "conflict", "enemigo", "enemy", "batalla"],
}

INTERVENTION_OUTPUT_SCHEMA = {
    "type": "object",
    "required": ["message"],
    "properties": {
        "message": {"type": "string", "minLength": 1},
        "emotion": {"type": "string"},
        "intensity": {"type": "string"},
        "suggestedActions": {"type": "array", "items": {"type": "string"}},
    },
}


@dataclass
class InterventionAnalysis:
    triggers: list[dict] = field(default_factory=list)
    relevance_score: float = 0.0
    should_intervene: bool = False
    reason: str = "No triggers found"


def get_intervention_characters(
    db: Session,
    *,
    story_id: str,
    user_id: str,
    character_ids: list[str] | None = None,
) -> list[Character]:
    """Intervention-enabled characters of ``user_id`` linked to the story."""
    stmt = (
        select(Character)
        .join(Character.stories)
        .where(
            Story.id == story_id,
            Character.author_id == user_id,
            Character.intervention_enabled.is_(True),
        )
        .order_by(Character.created_at.asc())
    )
    if character_ids:
        stmt = stmt.where(Character.id.in_(character_ids))
    return list(db.execute(stmt).scalars().all())


def cooldown_until(character: Character):
    if character.last_intervention is None:
        return None
    period = COOLDOWN_PERIODS.get(character.intervention_frequency, COOLDOWN_PERIODS["medium"])
    return character.last_intervention + period


def analyze_for_intervention(character: Character, recent_text: str) -> InterventionAnalysis:
    text = recent_text.lower()
    triggers: list[dict] = []

    for word in character.trigger_words or []:
        if str(word).lower() in text:
            triggers.append({"type": "word", "match": word, "confidence": WORD_CONFIDENCE})

    if character.name.lower() in text:
        triggers.append({"type": "character_mention", "match": character.name, "confidence": MENTION_CONFIDENCE})

    for topic in character.trigger_topics or []:
        keywords = TOPIC_KEYWORDS.get(str(topic).lower(), [str(topic)])
        if any(keyword.lower() in text for keyword in keywords):
            triggers.append({"type": "topic", "match": topic, "confidence": TOPIC_CONFIDENCE})

    if not triggers:
        return InterventionAnalysis()

    relevance = min(sum(item["confidence"] for item in triggers) / len(triggers), 1.0)
    threshold = INTERVENTION_THRESHOLDS.get(character.intervention_frequency, INTERVENTION_THRESHOLDS["medium"])
    return InterventionAnalysis(
        triggers=triggers,
        relevance_score=relevance,
        should_intervene=relevance >= threshold,
        reason="Triggered by: " + ", ".join(str(item["match"]) for item in triggers),
    )


def generate_intervention(
    client: OpenAIClient,
    character: Character,
    *,
    model: str,
    current_text: str,
    recent_text: str,
    analysis: InterventionAnalysis,
) -> dict:
    personality = character.personality or DEFAULT_PERSONALITY
    raw = client.chat_completion(
        model=model,
        messages=[
            {"role": "system", "content": build_character_system_prompt(character, personality)},
            {
                "role": "user",
                "content": build_intervention_prompt(
                    character,
                    current_text=current_text,
                    recent_text=recent_text,
                    triggers=analysis.triggers,
                ),
            },
        ],
        temperature=0.8,
        max_tokens=300,
        json_mode=True,
    )
    parsed = validate_structured_output(raw, schema=INTERVENTION_OUTPUT_SCHEMA)
    return {
        "characterId": character.id,
        "characterName": character.name,
        "message": parsed["message"],
        "emotion": parsed.get("emotion") or "curious",
        "type": character.intervention_style,
        "intensity": parsed.get("intensity") or "moderate",
        "triggerReason": analysis.reason,
        "suggestedActions": parsed.get("suggestedActions"),
    }


def check_character(
    db: Session,
    client: OpenAIClient,
    character: Character,
    *,
    model: str,
    current_text: str,
    recent_text: str,
) -> dict | None:
    now = utc_now_naive()
    until = cooldown_until(character)
    if until is not None and now < until:
        return None

    analysis = analyze_for_intervention(character, recent_text)
    if not analysis.should_intervene:
        return None

    intervention = generate_intervention(
        client,
        character,
        model=model,
        current_text=current_text,
        recent_text=recent_text,
        analysis=analysis,
    )
    character.last_intervention = now
    character.total_interventions = (character.total_interventions or 0) + 1
    db.flush()
    logger.info("character %s intervened (%s)", character.id, analysis.reason)
    return intervention


def check_all_characters(
    db: Session,
    client: OpenAIClient,
    *,
    story_id: str,
    user_id: str,
    current_text: str,
    recent_text: str,
    model: str,
    character_ids: list[str] | None = None,
) -> dict | None:
    """First intervention produced by the story's characters, checked in order."""
    characters = get_intervention_characters(db, story_id=story_id, user_id=user_id, character_ids=character_ids)
    for character in characters:
        intervention = check_character(
            db,
            client,
            character,
            model=model,
            current_text=current_text,
            recent_text=recent_text,
        )
        if intervention is not None:
            return intervention
    return None
