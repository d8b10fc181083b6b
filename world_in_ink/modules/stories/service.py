from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from world_in_ink.db.models import Story
from world_in_ink.errors import NotFoundError
from world_in_ink.utils.text import count_words

_UNSET = object()


def get_owned_story(db: Session, *, story_id: str, user_id: str) -> Story:
    """Load a story only if `user_id` authored it.

    Missing and foreign stories raise the same NotFoundError so callers never
    reveal that someone else's story exists.
    """
    story = db.get(Story, story_id)
    if story is None or story.author_id != user_id:
        raise NotFoundError("Story not found")
    return story


def list_user_stories(db: Session, *, user_id: str) -> list[Story]:
    stmt = select(Story).where(Story.author_id == user_id).order_by(Story.updated_at.desc(), Story.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def create_story(
    db: Session,
    *,
    user_id: str,
    title: str,
    content: str,
    cover_image_url: str | None = None,
) -> Story:
    story = Story(
        title=title,
        content=content,
        word_count=count_words(content),
        cover_image_url=cover_image_url,
        author_id=user_id,
    )
    db.add(story)
    db.flush()
    return story


def update_story(
    db: Session,
    *,
    story_id: str,
    user_id: str,
    title: str,
    content=_UNSET,
    published: bool | None = None,
    word_count: int | None = None,
    cover_image_url=_UNSET,
) -> Story:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    story.title = title
    if content is not _UNSET and content is not None:
        story.content = content
    if published is not None:
        story.published = published
    story.word_count = word_count if word_count is not None else count_words(story.content)
    if cover_image_url is not _UNSET:
        story.cover_image_url = cover_image_url
    db.flush()
    return story


def delete_story(db: Session, *, story_id: str, user_id: str) -> None:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    db.delete(story)
    db.flush()
