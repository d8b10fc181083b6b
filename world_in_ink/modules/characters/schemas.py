from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from world_in_ink.schemas import CamelModel, require_text

Temperament = Literal["calm", "passionate", "melancholic", "cheerful", "mysterious", "balanced"]
SpeakingStyle = Literal["formal", "casual", "poetic", "direct", "playful", "natural"]
Humor = Literal["none", "subtle", "sarcastic", "witty", "dark"]
Confidence = Literal["shy", "modest", "confident", "arrogant"]
VoiceTone = Literal[
    "friendly",
    "serious",
    "playful",
    "dramatic",
    "mysterious",
    "neutral",
    "warm",
    "inspiring",
    "cheerful",
    "natural",
]
InterventionStyle = Literal["suggestion", "complaint", "question", "encouragement"]
InterventionFrequency = Literal["low", "medium", "high"]


class CharacterCreateRequest(CamelModel):
    name: str | None = Field(default=None, validate_default=True)
    backstory: str = ""
    traits: list[str] = Field(default_factory=list)
    voice_tone: str = "neutral"
    intervention_enabled: bool = True

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str | None) -> str:
        return require_text(value, "Name is required")


class PersonalityUpdate(CamelModel):
    temperament: Temperament | None = None
    speaking_style: SpeakingStyle | None = None
    humor: Humor | None = None
    confidence: Confidence | None = None
    emotional_tendencies: list[str] | None = None


class CharacterUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    backstory: str | None = None
    traits: list[str] | None = None
    personality: PersonalityUpdate | None = None
    voice_tone: VoiceTone | None = None
    emotional_range: list[str] | None = None
    trigger_topics: list[str] | None = None
    trigger_words: list[str] | None = None
    intervention_enabled: bool | None = None
    intervention_style: InterventionStyle | None = None
    intervention_frequency: InterventionFrequency | None = None


class CharacterStoryRef(CamelModel):
    id: str
    title: str


class CharacterOut(CamelModel):
    id: str
    author_id: str
    name: str
    backstory: str
    traits: list[str]
    personality: dict | None = None
    voice_tone: str
    emotional_range: list[str]
    trigger_topics: list[str]
    trigger_words: list[str]
    intervention_enabled: bool
    intervention_style: str
    intervention_frequency: str
    total_interventions: int
    last_intervention: datetime | None = None
    stories: list[CharacterStoryRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CharacterListResponse(CamelModel):
    success: bool = True
    characters: list[CharacterOut]
    total: int


class CharacterResponse(CamelModel):
    success: bool = True
    character: CharacterOut


class CharacterUpdateResponse(CharacterResponse):
    message: str = "Character updated successfully"


class CharacterDeleteResponse(CamelModel):
    success: bool = True
    message: str = "Character deleted successfully"


class LiveCharacter(CamelModel):
    id: str
    name: str
    role: str
    personality: str
    avatar: str
    is_active: bool


class LiveCharactersResponse(CamelModel):
    success: bool = True
    characters: list[LiveCharacter]


class DiscoverRequest(CamelModel):
    story_id: str | None = Field(default=None, validate_default=True)
    content: str | None = Field(default=None, validate_default=True)

    @field_validator("story_id")
    @classmethod
    def _story_required(cls, value: str | None) -> str:
        return require_text(value, "Story ID required")

    @field_validator("content")
    @classmethod
    def _content_length(cls, value: str | None) -> str:
        if value is None or len(value) < 100:
            raise ValueError("Story content too short")
        return value


class DiscoveredCharacter(CamelModel):
    id: str
    name: str
    role: str | None = None
    personality: str | None = None


class DiscoverResponse(CamelModel):
    success: bool = True
    characters: list[DiscoveredCharacter]
    message: str
