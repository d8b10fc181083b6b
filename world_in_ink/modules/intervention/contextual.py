"""On-demand interventions: a single character reads the story so far and
decides for itself whether to speak, and in which register."""

from __future__ import annotations

import logging

from world_in_ink.modules.intervention.prompts import (
    CONTEXTUAL_TYPES,
    build_contextual_system_prompt,
    build_contextual_user_prompt,
)
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.errors import OUTPUT_SHAPE, LLMOutputValidationError
from world_in_ink.modules.llm.structured import validate_structured_output
from world_in_ink.utils.text import strip_tags

logger = logging.getLogger(__name__)

CONTEXT_WINDOW_CHARS = 3000
DEFAULT_EMOTION = "thoughtful"

CONTEXTUAL_OUTPUT_SCHEMA = {
    "type": "object",
    "required": ["shouldIntervene"],
    "properties": {
        "shouldIntervene": {"type": "boolean"},
        "intervention": {
            "type": ["object", "null"],
            "required": ["type", "message"],
            "properties": {
                "type": {"enum": list(CONTEXTUAL_TYPES)},
                "message": {"type": "string", "minLength": 1},
                "emotion": {"type": "string"},
            },
        },
        "reason": {"type": "string"},
    },
}


def story_excerpt(story_content: str, limit: int = CONTEXT_WINDOW_CHARS) -> str:
    """Tail of the story with markup removed."""
    return strip_tags(story_content).strip()[-limit:]


def decide_contextual_intervention(
    client: OpenAIClient,
    *,
    model: str,
    character_name: str,
    character_personality: str,
    story_content: str,
    recent_addition: str | None = None,
    force: bool = False,
) -> dict | None:
    """The character's interjection, or None when it stays silent.

    ``force`` makes the character speak even when the model decided not to.
    """
    raw = client.chat_completion(
        model=model,
        messages=[
            {"role": "system", "content": build_contextual_system_prompt(character_name, character_personality)},
            {
                "role": "user",
                "content": build_contextual_user_prompt(
                    character_name,
                    story_excerpt=story_excerpt(story_content),
                    recent_text=strip_tags(recent_addition).strip(),
                    force=force,
                ),
            },
        ],
        temperature=0.8,
        max_tokens=500,
        json_mode=True,
    )
    result = validate_structured_output(raw, schema=CONTEXTUAL_OUTPUT_SCHEMA)
    logger.info(
        "contextual intervention for %s: intervene=%s reason=%s",
        character_name,
        result["shouldIntervene"],
        result.get("reason"),
    )

    if not result["shouldIntervene"] and not force:
        return None
    intervention = result.get("intervention")
    if not intervention:
        raise LLMOutputValidationError("model chose to intervene without an intervention", error_kind=OUTPUT_SHAPE)
    return {
        "type": intervention["type"],
        "message": intervention["message"],
        "emotion": intervention.get("emotion") or DEFAULT_EMOTION,
    }
