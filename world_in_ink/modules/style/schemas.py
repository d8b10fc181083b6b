from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from world_in_ink.schemas import CamelModel


class AnalyzeRequest(CamelModel):
    force_reanalyze: bool = False


class GenerateRequest(CamelModel):
    prompt: str | None = Field(default=None, validate_default=True)
    context: str = ""
    max_length: int = Field(default=500, ge=50, le=2000)
    temperature: float = Field(default=0.7, ge=0, le=1)

    @field_validator("prompt")
    @classmethod
    def _prompt_length(cls, value: str | None) -> str:
        if value is None or len(value) < 10:
            raise ValueError("The prompt must be at least 10 characters")
        return value


class EligibilityOut(CamelModel):
    eligible: bool
    current_stories: int
    current_words: int
    message: str


class EligibilityResponse(CamelModel):
    success: bool = True
    eligibility: EligibilityOut


class StyleExampleOut(CamelModel):
    id: str
    text: str
    example_type: str
    story_title: str
    context: str
    word_count: int
    relevance_score: float
    created_at: datetime


class StyleProfileOut(CamelModel):
    id: str
    user_id: str
    narrative_voice: str
    preferred_tense: str
    avg_sentence_length: float
    avg_paragraph_length: float
    vocabulary_level: str
    dominant_tones: list[str]
    writing_pace: str
    descriptive_density: str
    signature_phrases: dict[str, int]
    favorite_words: dict[str, int]
    avoided_words: list[str]
    dialogue_style: str
    dialogue_frequency: float
    similar_authors: list[dict]
    literary_movement: str | None = None
    analyzed_stories: int
    total_words_analyzed: int
    confidence: float
    is_active: bool
    last_analyzed: datetime
    created_at: datetime
    updated_at: datetime
    examples: list[StyleExampleOut] = Field(default_factory=list)


class AnalyzeResponse(CamelModel):
    success: bool = True
    profile: StyleProfileOut
    message: str = "Style analysis completed successfully"


class ProfileResponse(CamelModel):
    success: bool = True
    profile: StyleProfileOut


class GenerateResponse(CamelModel):
    success: bool = True
    generated_text: str
    used_style: bool = True
    style_confidence: float


class ProfileDeleteResponse(CamelModel):
    success: bool = True
    message: str = "Style profile deleted successfully"
