from __future__ import annotations

import logging
from dataclasses import dataclass, field

from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.structured import validate_structured_output

logger = logging.getLogger(__name__)

AI_SAMPLE_LIMIT = 15000

ANALYZER_SYSTEM_PROMPT = (
    "You are an expert literary critic who analyzes writing styles. "
    "You answer ONLY with valid JSON, no markdown and no extra explanations."
)

STYLE_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "tones": {"type": "array", "items": {"type": "string"}},
        "writingPace": {"type": "string"},
        "descriptiveDensity": {"type": "string"},
        "dialogueStyle": {"type": "string"},
        "literaryMovement": {"type": ["string", "null"]},
        "similarAuthors": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "similarity": {"type": "number"},
                    "reason": {"type": "string"},
                },
            },
        },
    },
}


@dataclass
class AIStyleAnalysis:
    tones: list[str] = field(default_factory=lambda: ["narrative"])
    writing_pace: str = "moderate"
    descriptive_density: str = "moderate"
    dialogue_style: str = "natural"
    literary_movement: str | None = None
    similar_authors: list[dict] = field(default_factory=list)


def build_analysis_prompt(
    sample: str,
    *,
    avg_sentence_length: float,
    avg_paragraph_length: float,
    vocabulary_level: str,
    narrative_voice: str,
    preferred_tense: str,
) -> str:
    return f"""You are an expert literary critic. Analyze the following text and give a detailed analysis of its literary style.

BASIC METRICS DETECTED:
- Average sentence length: {avg_sentence_length:.1f} words
- Average paragraph length: {avg_paragraph_length:.1f} sentences
- Vocabulary level: {vocabulary_level}
- Narrative voice: {narrative_voice}
- Preferred tense: {preferred_tense}

TEXT TO ANALYZE:
{sample}

Give your analysis in the following JSON format (NO markdown, only valid JSON):

{{
  "tones": ["2-4 dominant tones, e.g. melancholic, poetic, hopeful, dark, humorous, philosophical, nostalgic"],
  "writingPace": "fast | moderate | slow | variable",
  "descriptiveDensity": "sparse | moderate | rich | very-rich",
  "dialogueStyle": "natural | formal | dialectal | minimalist | expressive",
  "literaryMovement": "literary movement if identifiable (e.g. magical realism, modernism) or null",
  "similarAuthors": [
    {{
      "name": "Author name",
      "similarity": 0.75,
      "reason": "short explanation of the resemblance"
    }}
  ],
  "overallImpression": "One sentence capturing what makes this style unique"
}}"""


def analyze_style_with_ai(
    client: OpenAIClient,
    *,
    model: str,
    texts: list[str],
    avg_sentence_length: float,
    avg_paragraph_length: float,
    vocabulary_level: str,
    narrative_voice: str,
    preferred_tense: str,
) -> AIStyleAnalysis:
    """Deep style reading from the model; falls back to neutral defaults on any failure."""
    sample = "\n\n".join(texts)[:AI_SAMPLE_LIMIT]
    prompt = build_analysis_prompt(
        sample,
        avg_sentence_length=avg_sentence_length,
        avg_paragraph_length=avg_paragraph_length,
        vocabulary_level=vocabulary_level,
        narrative_voice=narrative_voice,
        preferred_tense=preferred_tense,
    )
    try:
        raw = client.chat_completion(
            model=model,
            messages=[
                {"role": "system", "content": ANALYZER_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=1000,
            json_mode=True,
        )
        parsed = validate_structured_output(raw, schema=STYLE_OUTPUT_SCHEMA)
    except Exception:  # noqa: BLE001
        logger.warning("ai style analysis failed, using defaults", exc_info=True)
        return AIStyleAnalysis()

    return AIStyleAnalysis(
        tones=list(parsed.get("tones") or []),
        writing_pace=parsed.get("writingPace") or "moderate",
        descriptive_density=parsed.get("descriptiveDensity") or "moderate",
        dialogue_style=parsed.get("dialogueStyle") or "natural",
        literary_movement=parsed.get("literaryMovement") or None,
        similar_authors=list(parsed.get("similarAuthors") or []),
    )


def _top_keys(weights: dict | None, limit: int) -> list[str]:
    ranked = sorted((weights or {}).items(), key=lambda item: item[1], reverse=True)
    return [key for key, _ in ranked[:limit]]


def build_style_prompt(profile) -> str:
    """Bullet-list description of a stored style profile for generation prompts."""
    avg_sentence = f"{profile.avg_sentence_length:.1f}" if profile.avg_sentence_length else "undefined"
    parts = [
        f"- Narrative voice: {profile.narrative_voice or 'undefined'}",
        f"- Tense: {profile.preferred_tense or 'undefined'}",
        f"- Average sentence length: {avg_sentence} words",
        f"- Vocabulary level: {profile.vocabulary_level or 'intermediate'}",
    ]
    if profile.dominant_tones:
        parts.append(f"- Dominant tones: {', '.join(profile.dominant_tones)}")
    parts.append(f"- Writing pace: {profile.writing_pace or 'moderate'}")
    parts.append(f"- Descriptive density: {profile.descriptive_density or 'moderate'}")
    if profile.dialogue_style:
        parts.append(f"- Dialogue style: {profile.dialogue_style}")

    phrases = _top_keys(profile.signature_phrases, 5)
    if phrases:
        parts.append("- Signature phrases: " + ", ".join(f'"{phrase}"' for phrase in phrases))
    words = _top_keys(profile.favorite_words, 8)
    if words:
        parts.append(f"- Favorite words: {', '.join(words)}")
    if profile.similar_authors:
        names = [str(author.get("name")) for author in profile.similar_authors[:3] if isinstance(author, dict)]
        parts.append(f"- Similar authors: {', '.join(names)}")
    if profile.literary_movement:
        parts.append(f"- Literary movement: {profile.literary_movement}")
    return "\n".join(parts)


def generate_in_user_style(
    client: OpenAIClient,
    profile,
    *,
    model: str,
    prompt: str,
    context: str,
    max_length: int = 500,
    temperature: float = 0.7,
) -> str:
    avg_sentence = f"{profile.avg_sentence_length:.0f}" if profile.avg_sentence_length else "15"
    tones = ", ".join(profile.dominant_tones or []) or "narrative"
    system_prompt = f"""You are a writing assistant who must write EXACTLY in the user's style.

USER STYLE:
{build_style_prompt(profile)}

CRITICAL INSTRUCTIONS:
1. IMITATE the user's style as faithfully as possible
2. Use the same kind of vocabulary ({profile.vocabulary_level or 'intermediate'})
3. Keep their average sentence length ({avg_sentence} words)
4. Use their narrative voice ({profile.narrative_voice or 'third person'})
5. Respect their preferred tense ({profile.preferred_tense or 'past'})
6. Work in their signature phrases where possible
7. Keep their dominant tone: {tones}
8. Respect their writing pace: {profile.writing_pace or 'moderate'}

Do NOT invent a different style. Do NOT use a generic style. It MUST sound as if the user wrote it."""

    user_prompt = f"""STORY CONTEXT:
{context}

REQUESTED CONTINUATION:
{prompt}

Write the continuation keeping the author's style FAITHFULLY. At most {max_length} words."""

    return client.chat_completion(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        max_tokens=min(max_length * 2, 2000),
    )
