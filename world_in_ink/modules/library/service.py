from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from world_in_ink.db.models import Story, StoryNode

LibraryType = Literal["all", "interactive", "linear"]


@dataclass(frozen=True)
class LibraryPage:
    rows: list[tuple[Story, int]]
    total: int
    page: int
    has_more: bool


def list_published_stories(
    db: Session,
    *,
    story_type: str = "all",
    search: str = "",
    page: int = 1,
    limit: int = 12,
) -> LibraryPage:
    filters = [Story.published.is_(True)]
    if story_type == "interactive":
        filters.append(Story.is_interactive.is_(True))
    elif story_type == "linear":
        filters.append(Story.is_interactive.is_(False))
    if search:
        filters.append(func.lower(Story.title).contains(search.lower(), autoescape=True))

    total = int(db.execute(select(func.count()).select_from(Story).where(*filters)).scalar_one())

    node_count = (
        select(func.count(StoryNode.id)).where(StoryNode.story_id == Story.id).correlate(Story).scalar_subquery()
    )
    offset = (page - 1) * limit
    stmt = (
        select(Story, node_count)
        .options(joinedload(Story.author))
        .where(*filters)
        .order_by(Story.views.desc(), Story.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    rows = [(story, int(count or 0)) for story, count in db.execute(stmt).all()]
    return LibraryPage(rows=rows, total=total, page=page, has_more=offset + len(rows) < total)
