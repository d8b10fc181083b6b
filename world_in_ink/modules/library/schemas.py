from __future__ import annotations

from datetime import datetime

from pydantic import Field

from world_in_ink.schemas import CamelModel


class LibraryAuthor(CamelModel):
    id: str
    name: str | None = None
    image: str | None = None


class LibraryNodeCount(CamelModel):
    story_nodes: int


class LibraryStory(CamelModel):
    id: str
    title: str
    content: str
    word_count: int
    views: int
    likes: int
    is_interactive: bool
    cover_image_url: str | None = None
    created_at: datetime
    author: LibraryAuthor
    node_count: LibraryNodeCount = Field(alias="_count")


class LibraryResponse(CamelModel):
    stories: list[LibraryStory]
    total: int
    page: int
    has_more: bool
