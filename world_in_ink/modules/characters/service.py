from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from world_in_ink.db.models import Character
from world_in_ink.errors import NotFoundError
from world_in_ink.modules.intervention.service import get_intervention_characters
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.structured import validate_structured_output
from world_in_ink.modules.stories.service import get_owned_story
from world_in_ink.utils.text import strip_tags

logger = logging.getLogger(__name__)

LIVE_AVATARS = ("🎭", "✨", "👤", "🌟", "💫")
MAX_DISCOVERED = 5
DISCOVERY_CONTENT_LIMIT = 8000

_TEMPERAMENTS = (
    ("hope", "optimistic"),
    ("determination", "passionate"),
    ("curiosity", "curious"),
    ("fear", "cautious"),
    ("anger", "passionate"),
    ("sadness", "melancholic"),
    ("joy", "cheerful"),
)

_VOICE_TONES = (
    (("leader", "inspiring", "líder", "inspirador"), "inspiring"),
    (("serious", "formal", "serio"), "serious"),
    (("cheerful", "optimistic", "alegre", "optimista"), "cheerful"),
    (("mysterious", "enigmatic", "misterioso", "enigmático"), "mysterious"),
    (("empathetic", "warm", "empático", "cálido"), "warm"),
)

_MOMENT_TOPICS = (
    (("discover", "descubr"), "discovery"),
    (("love", "romance", "amor"), "love"),
    (("danger", "risk", "peligro", "riesgo"), "danger"),
    (("secret", "secreto"), "secrets"),
    (("journey", "adventure", "viaje", "aventura"), "adventure"),
    (("conflict", "fight", "conflicto", "pelea"), "conflict"),
)

DISCOVERY_SYSTEM_PROMPT = (
    "You are an expert in literary analysis. You extract characters from stories precisely. "
    "You answer ONLY with valid JSON, no markdown."
)

DISCOVERY_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "characters": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "role": {"type": "string"},
                    "personality": {"type": "string"},
                    "traits": {"type": "array", "items": {"type": "string"}},
                    "emotionalTendencies": {"type": "array", "items": {"type": "string"}},
                    "speakingStyle": {"type": "string"},
                    "keyMoments": {"type": "array", "items": {"type": "string"}},
                },
            },
        }
    },
}


@dataclass(frozen=True)
class DiscoveredCharacter:
    character: Character
    role: str | None
    personality: str | None


def get_owned_character(db: Session, *, character_id: str, user_id: str) -> Character:
    character = db.get(Character, character_id)
    if character is None or character.author_id != user_id:
        raise NotFoundError("Character not found")
    return character


def list_user_characters(db: Session, *, user_id: str) -> list[Character]:
    stmt = select(Character).where(Character.author_id == user_id).order_by(Character.updated_at.desc())
    return list(db.execute(stmt).scalars().all())


def create_character(
    db: Session,
    *,
    user_id: str,
    name: str,
    backstory: str = "",
    traits: list[str] | None = None,
    voice_tone: str = "neutral",
    intervention_enabled: bool = True,
) -> Character:
    character = Character(
        author_id=user_id,
        name=name,
        backstory=backstory,
        traits=list(traits or []),
        voice_tone=voice_tone,
        intervention_enabled=intervention_enabled,
    )
    db.add(character)
    db.flush()
    return character


def update_character(
    db: Session,
    *,
    character_id: str,
    user_id: str,
    changes: dict,
    personality: dict | None = None,
) -> Character:
    """Apply column changes; ``personality`` keys are merged over the stored ones."""
    character = get_owned_character(db, character_id=character_id, user_id=user_id)
    for key, value in changes.items():
        setattr(character, key, value)
    if personality is not None:
        character.personality = {**(character.personality or {}), **personality}
    db.flush()
    logger.info("updated character %s", character.id)
    return character


def delete_character(db: Session, *, character_id: str, user_id: str) -> None:
    character = get_owned_character(db, character_id=character_id, user_id=user_id)
    db.delete(character)
    db.flush()
    logger.info("deleted character %s", character_id)


def list_live_characters(db: Session, *, story_id: str, user_id: str) -> list[dict]:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    characters = get_intervention_characters(db, story_id=story.id, user_id=user_id)
    return [
        {
            "id": character.id,
            "name": character.name,
            "role": "character",
            "personality": (character.backstory or "")[:100] or "Story character",
            "avatar": LIVE_AVATARS[index % len(LIVE_AVATARS)],
            "is_active": character.intervention_enabled,
        }
        for index, character in enumerate(characters)
    ]


def infer_temperament(emotions: list[str] | None) -> str:
    for emotion in emotions or []:
        lowered = emotion.lower()
        for key, temperament in _TEMPERAMENTS:
            if key in lowered:
                return temperament
    return "balanced"


def infer_voice_tone(personality: str | None) -> str:
    lowered = (personality or "").lower()
    for keywords, tone in _VOICE_TONES:
        if any(keyword in lowered for keyword in keywords):
            return tone
    return "natural"


def extract_topics(key_moments: list[str] | None) -> list[str]:
    topics: list[str] = []
    for moment in key_moments or []:
        lowered = moment.lower()
        for keywords, topic in _MOMENT_TOPICS:
            if topic not in topics and any(keyword in lowered for keyword in keywords):
                topics.append(topic)
    return topics


def build_discovery_prompt(content: str) -> str:
    return f"""Analyze this story and extract the main characters. For each character, identify their name, their role in the story and the personality implied by the text.

STORY:
"{content[:DISCOVERY_CONTENT_LIMIT]}"

Reply in JSON with exactly this format:
{{
  "characters": [
    {{
      "name": "Character name",
      "role": "protagonist/antagonist/supporting/mentioned",
      "personality": "Short description of their personality based on how they act in the story",
      "traits": ["trait1", "trait2", "trait3"],
      "emotionalTendencies": ["emotion1", "emotion2"],
      "speakingStyle": "How this character speaks",
      "keyMoments": ["key moment 1", "key moment 2"]
    }}
  ]
}}

RULES:
1. Only include characters that appear by name in the story
2. Do not invent characters that are not in the text
3. If there are no clear characters, return an empty array
4. At most {MAX_DISCOVERED} main characters
5. The personality must be based ONLY on what the text shows"""


def _apply_discovery(character: Character, extracted: dict) -> None:
    character.backstory = extracted.get("personality") or ""
    character.traits = list(extracted.get("traits") or [])
    character.personality = {
        "temperament": infer_temperament(extracted.get("emotionalTendencies")),
        "speakingStyle": extracted.get("speakingStyle") or "natural",
        "emotionalTendencies": list(extracted.get("emotionalTendencies") or []),
    }
    character.intervention_enabled = True
    character.intervention_style = "suggestion"
    character.intervention_frequency = "medium"
    character.voice_tone = infer_voice_tone(extracted.get("personality"))
    character.trigger_topics = extract_topics(extracted.get("keyMoments"))


def discover_characters(
    db: Session,
    client: OpenAIClient,
    *,
    story_id: str,
    user_id: str,
    content: str,
    model: str,
) -> list[DiscoveredCharacter]:
    """Extract named characters from story text and upsert them by (author, name).

    Every returned character is intervention-enabled and linked to the story.
    """
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    clean = strip_tags(content).strip()
    logger.info("discovering characters for story %s", story.id)

    raw = client.chat_completion(
        model=model,
        messages=[
            {"role": "system", "content": DISCOVERY_SYSTEM_PROMPT},
            {"role": "user", "content": build_discovery_prompt(clean)},
        ],
        temperature=0.3,
        max_tokens=2000,
        json_mode=True,
    )
    extracted = validate_structured_output(raw, schema=DISCOVERY_OUTPUT_SCHEMA).get("characters") or []

    discovered: list[DiscoveredCharacter] = []
    for item in extracted[:MAX_DISCOVERED]:
        character = db.execute(
            select(Character).where(Character.author_id == user_id, Character.name == item["name"])
        ).scalars().first()
        if character is None:
            character = Character(author_id=user_id, name=item["name"])
            db.add(character)
        _apply_discovery(character, item)
        if story not in character.stories:
            character.stories.append(story)
        db.flush()
        discovered.append(
            DiscoveredCharacter(character=character, role=item.get("role"), personality=item.get("personality"))
        )

    logger.info("discovered %d characters for story %s", len(discovered), story.id)
    return discovered
