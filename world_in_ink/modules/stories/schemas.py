from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from world_in_ink.schemas import CamelModel, require_text


class StoryCreateRequest(CamelModel):
    title: str = Field(default="", validate_default=True)
    content: str
    cover_image_url: str | None = None

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, value: str) -> str:
        return require_text(value, "Title cannot be empty")


class StoryUpdateRequest(CamelModel):
    title: str | None = Field(default=None, validate_default=True)
    content: str | None = None
    published: bool | None = None
    word_count: int | None = Field(default=None, ge=0)
    cover_image_url: str | None = None

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str | None) -> str:
        return require_text(value, "Title is required")


class StoryOut(CamelModel):
    id: str
    title: str
    content: str
    word_count: int
    published: bool
    views: int
    likes: int
    cover_image_url: str | None = None
    is_interactive: bool
    author_id: str
    created_at: datetime
    updated_at: datetime


class StoryDeleteResponse(CamelModel):
    success: bool = True
    message: str = "Story deleted successfully"
