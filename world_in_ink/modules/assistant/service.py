from __future__ import annotations

import logging
import time
from collections.abc import Callable

from world_in_ink.modules.assistant.tts import MAX_TTS_CHARS, clamp_speed, truncate_for_tts
from world_in_ink.modules.llm.client import OpenAIClient, message_text
from world_in_ink.modules.llm.structured import validate_structured_output

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7

GRAMMAR_SYSTEM_PROMPT = """You are a professional writing assistant specializing in grammar, style, and clarity.
Your expertise includes:
- Advanced grammar and punctuation rules
- Style guide compliance
- Writing style adaptation
- Clarity and readability optimization
- Tone and voice consistency
- Audience-appropriate language

Provide detailed, constructive feedback that helps improve the text while maintaining the author's voice and intent.
Consider the specified writing style and context when making suggestions.
Only suggest changes that would genuinely improve the text.
Provide confidence scores based on the certainty of each suggestion."""

GRAMMAR_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "original": {"type": "string"},
        "suggestions": {"type": "array", "items": {"type": "object"}},
        "overall_analysis": {"type": "string"},
    },
}


class AssistantRunError(RuntimeError):
    pass


def build_grammar_prompt(
    *,
    text: str,
    context: str | None,
    writing_style: str | None,
    filters: list[str] | None,
    confidence_threshold: float,
) -> str:
    focus = ", ".join(filters) if filters else "grammar, style, clarity"
    return f"""Analyze the following text for grammar, style, and clarity. Provide suggestions for improvement.
Text: "{text}"
Context: {context or "general writing"}
Writing Style: {writing_style or "creative"}
Focus Areas: {focus}
Confidence Threshold: {confidence_threshold}

Please provide the analysis in the following JSON format:
{{
  "original": "the original text",
  "suggestions": [
    {{
      "type": "grammar|style|clarity",
      "original": "the original phrase",
      "suggestion": "the suggested improvement",
      "explanation": "brief explanation of the suggestion",
      "tone": "formal|casual|creative|technical",
      "confidence": 0.0-1.0
    }}
  ],
  "overall_analysis": "brief overall analysis of the text"
}}

Focus on:
1. Grammar and punctuation
2. Style and flow
3. Clarity and readability
4. Tone consistency
5. Word choice and phrasing
6. Writing style appropriateness
7. Sentence structure and variety
8. Paragraph organization
9. Active vs passive voice
10. Redundancy and conciseness

Only include suggestions that would genuinely improve the text and match the specified writing style.
Consider the context and intended audience when making suggestions.
Provide confidence scores based on the certainty of each suggestion."""


def filter_suggestions(suggestions: list, threshold: float) -> list[dict]:
    kept: list[dict] = []
    for item in suggestions:
        if not isinstance(item, dict):
            continue
        confidence = item.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            continue
        if confidence >= threshold:
            kept.append(item)
    return kept


def check_grammar(
    client: OpenAIClient,
    *,
    model: str,
    text: str,
    context: str | None = None,
    writing_style: str | None = None,
    filters: list[str] | None = None,
    confidence_threshold: float | None = None,
) -> dict:
    threshold = confidence_threshold or DEFAULT_CONFIDENCE_THRESHOLD
    prompt = build_grammar_prompt(
        text=text,
        context=context,
        writing_style=writing_style,
        filters=filters,
        confidence_threshold=threshold,
    )
    raw = client.chat_completion(
        model=model,
        messages=[
            {"role": "system", "content": GRAMMAR_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.3,
        json_mode=True,
    )
    analysis = validate_structured_output(raw or "{}", schema=GRAMMAR_OUTPUT_SCHEMA)
    if "suggestions" in analysis:
        analysis["suggestions"] = filter_suggestions(analysis["suggestions"], threshold)
    return analysis


def synthesize_speech(client: OpenAIClient, *, model: str, text: str, voice: str, speed: object) -> bytes:
    clamped = clamp_speed(speed)
    narration = truncate_for_tts(text, MAX_TTS_CHARS)
    logger.info("generating audio for %d chars with voice %s at speed %s", len(narration), voice, clamped)
    audio = client.create_speech(model=model, voice=voice, text=narration, speed=clamped)
    logger.info("audio generated: %d bytes", len(audio))
    return audio


def open_thread(client: OpenAIClient) -> str:
    return client.create_thread()


def wait_for_run(
    client: OpenAIClient,
    *,
    thread_id: str,
    run: dict,
    poll_interval_s: float,
    max_polls: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """Poll a run at a fixed interval until it completes.

    Only ``completed`` and ``failed`` are terminal. With ``max_polls`` left at
    None the loop waits for as long as the provider keeps the run in any other
    state.
    """
    polls = 0
    while run.get("status") != "completed":
        if max_polls is not None and polls >= max_polls:
            raise AssistantRunError("Assistant run did not complete")
        sleep(poll_interval_s)
        run = client.retrieve_run(thread_id, str(run["id"]))
        polls += 1
        if run.get("status") == "failed":
            logger.error("assistant run %s failed: %s", run.get("id"), run.get("last_error"))
            raise AssistantRunError("Assistant run failed")
    return run


def send_message(
    client: OpenAIClient,
    *,
    thread_id: str,
    message: str,
    assistant_id: str,
    poll_interval_s: float,
    max_polls: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    client.add_message(thread_id, message)
    run = client.create_run(thread_id, assistant_id)
    run = wait_for_run(
        client,
        thread_id=thread_id,
        run=run,
        poll_interval_s=poll_interval_s,
        max_polls=max_polls,
        sleep=sleep,
    )

    for item in client.list_messages(thread_id, order="desc"):
        if item.get("run_id") == run.get("id") and item.get("role") == "assistant":
            return message_text(item)
    raise AssistantRunError("No assistant message found for this run")
