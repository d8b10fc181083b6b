"""Decoding of JSON-mode completions into validated dicts."""

from __future__ import annotations

import json

from jsonschema import Draft202012Validator

from world_in_ink.modules.llm.errors import (
    OUTPUT_JSON_PARSE,
    OUTPUT_SCHEMA_VALIDATE,
    OUTPUT_SHAPE,
    LLMOutputValidationError,
)

SNIPPET_LIMIT = 240


def _snippet(value: object) -> str | None:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    compact = " ".join(text.split())
    return compact[:SNIPPET_LIMIT] or None


def strip_json_fence(text: str) -> str:
    """Drop a ```json ... ``` wrapper some models add despite JSON mode."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        cleaned = cleaned.rsplit("```", 1)[0]
    return cleaned.strip()


def decode_completion(raw: object) -> object:
    if isinstance(raw, (dict, list)):
        return raw
    text = strip_json_fence(str(raw or ""))
    if not text:
        raise LLMOutputValidationError("model returned no content", error_kind=OUTPUT_JSON_PARSE)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise LLMOutputValidationError(
            f"model output is not json: {exc.msg}",
            error_kind=OUTPUT_JSON_PARSE,
            raw_snippet=_snippet(text),
        ) from exc


def validate_structured_output(raw: object, *, schema: dict) -> dict:
    """Decode ``raw`` and check it against ``schema``; the result must be a JSON object."""
    payload = decode_completion(raw)
    error = next(iter(Draft202012Validator(schema).iter_errors(payload)), None)
    if error is not None:
        raise LLMOutputValidationError(
            f"model output does not match schema: {error.message}",
            error_kind=OUTPUT_SCHEMA_VALIDATE,
            raw_snippet=_snippet(payload),
        )
    if not isinstance(payload, dict):
        raise LLMOutputValidationError(
            "model output must be a json object",
            error_kind=OUTPUT_SHAPE,
            raw_snippet=_snippet(payload),
        )
    return payload
