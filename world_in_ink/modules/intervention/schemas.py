from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from world_in_ink.schemas import CamelModel


def _min_length(value: str | None, size: int, message: str) -> str:
    if value is None or len(value) < size:
        raise ValueError(message)
    return value


class InterventionRequest(CamelModel):
    story_id: str | None = Field(default=None, validate_default=True)
    current_text: str | None = Field(default=None, validate_default=True)
    recent_text: str | None = Field(default=None, validate_default=True)
    character_ids: list[str] | None = None

    @field_validator("story_id")
    @classmethod
    def _story_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Story ID is required")

    @field_validator("current_text")
    @classmethod
    def _current_text_length(cls, value: str | None) -> str:
        return _min_length(value, 10, "Current text must be at least 10 characters")

    @field_validator("recent_text")
    @classmethod
    def _recent_text_length(cls, value: str | None) -> str:
        return _min_length(value, 5, "Recent text must be at least 5 characters")


class Intervention(CamelModel):
    id: str
    timestamp: datetime
    character_id: str
    character_name: str
    message: str
    emotion: str
    type: str
    intensity: str
    trigger_reason: str
    suggested_actions: list[str] | None = None


class InterventionResponse(CamelModel):
    success: bool = True
    should_intervene: bool
    intervention: Intervention | None = None


class CharacterInterveneRequest(CamelModel):
    story_id: str | None = Field(default=None, validate_default=True)
    current_text: str | None = Field(default=None, validate_default=True)
    recent_addition: str | None = Field(default=None, validate_default=True)

    @field_validator("story_id")
    @classmethod
    def _story_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Story ID is required")

    @field_validator("current_text")
    @classmethod
    def _current_text_length(cls, value: str | None) -> str:
        return _min_length(value, 10, "Current text must be at least 10 characters")

    @field_validator("recent_addition")
    @classmethod
    def _recent_addition_length(cls, value: str | None) -> str:
        return _min_length(value, 5, "Recent addition must be at least 5 characters")


class ContextualInterventionRequest(CamelModel):
    story_id: str | None = Field(default=None, validate_default=True)
    character_id: str | None = Field(default=None, validate_default=True)
    character_name: str | None = Field(default=None, validate_default=True)
    character_personality: str | None = Field(default=None, validate_default=True)
    story_content: str | None = Field(default=None, validate_default=True)
    recent_addition: str | None = None
    force_intervention: bool = False

    @field_validator("story_id")
    @classmethod
    def _story_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Story ID is required")

    @field_validator("character_id")
    @classmethod
    def _character_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Character ID is required")

    @field_validator("character_name")
    @classmethod
    def _name_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Character name is required")

    @field_validator("character_personality")
    @classmethod
    def _personality_required(cls, value: str | None) -> str:
        return _min_length(value, 1, "Character personality is required")

    @field_validator("story_content")
    @classmethod
    def _content_length(cls, value: str | None) -> str:
        return _min_length(value, 50, "Story content must be at least 50 characters")


class ContextualIntervention(CamelModel):
    type: str
    message: str
    emotion: str


class ContextualInterventionResponse(CamelModel):
    success: bool = True
    should_intervene: bool
    intervention: ContextualIntervention | None = None
