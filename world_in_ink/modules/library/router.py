from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from world_in_ink.db.session import get_db
from world_in_ink.errors import api_error
from world_in_ink.modules.library.schemas import LibraryAuthor, LibraryNodeCount, LibraryResponse, LibraryStory
from world_in_ink.modules.library.service import list_published_stories
from world_in_ink.utils.text import preview_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/library", tags=["library"])


@router.get("", response_model=LibraryResponse)
def library(
    story_type: str = Query(default="all", alias="type"),
    search: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    db: Session = Depends(get_db),
) -> LibraryResponse:
    try:
        result = list_published_stories(db, story_type=story_type, search=search.strip(), page=page, limit=limit)
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to load library")
        raise api_error(500, "Failed to load library") from exc

    stories = [
        LibraryStory(
            id=story.id,
            title=story.title,
            content=preview_text(story.content),
            word_count=story.word_count,
            views=story.views,
            likes=story.likes,
            is_interactive=story.is_interactive,
            cover_image_url=story.cover_image_url,
            created_at=story.created_at,
            author=LibraryAuthor(id=story.author.id, name=story.author.name, image=story.author.image),
            node_count=LibraryNodeCount(story_nodes=node_count),
        )
        for story, node_count in result.rows
    ]
    return LibraryResponse(stories=stories, total=result.total, page=result.page, has_more=result.has_more)
