from __future__ import annotations

import pytest

from world_in_ink.modules.llm.errors import (
    OUTPUT_JSON_PARSE,
    OUTPUT_SCHEMA_VALIDATE,
    OUTPUT_SHAPE,
    LLMOutputValidationError,
)
from world_in_ink.modules.llm.structured import validate_structured_output

SCHEMA = {
    "type": ["object", "array"],
    "properties": {"message": {"type": "string"}},
}


def test_accepts_json_string_and_dict() -> None:
    assert validate_structured_output('{"message": "hi"}', schema=SCHEMA) == {"message": "hi"}
    assert validate_structured_output({"message": "hi"}, schema=SCHEMA) == {"message": "hi"}


@pytest.mark.parametrize("raw", ["", "   ", "not json", "{broken"])
def test_rejects_unparseable_text(raw: str) -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_structured_output(raw, schema=SCHEMA)
    assert excinfo.value.error_kind == OUTPUT_JSON_PARSE


def test_schema_violation() -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_structured_output('{"message": 3}', schema=SCHEMA)
    assert excinfo.value.error_kind == OUTPUT_SCHEMA_VALIDATE
    assert excinfo.value.raw_snippet == '{"message": 3}'


def test_top_level_must_be_object() -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_structured_output("[1, 2]", schema=SCHEMA)
    assert excinfo.value.error_kind == OUTPUT_SHAPE


def test_markdown_fence_is_ignored() -> None:
    raw = '```json\n{"message": "fenced"}\n```'
    assert validate_structured_output(raw, schema=SCHEMA) == {"message": "fenced"}
