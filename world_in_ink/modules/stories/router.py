from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from world_in_ink.db.session import get_db
from world_in_ink.errors import NotFoundError, api_error
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.stories.schemas import StoryCreateRequest, StoryDeleteResponse, StoryOut, StoryUpdateRequest
from world_in_ink.modules.stories.service import create_story, delete_story, get_owned_story, list_user_stories, update_story

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stories", tags=["stories"])


@router.get("", response_model=list[StoryOut])
def list_stories(db: Session = Depends(get_db), user=Depends(get_current_user)) -> list[StoryOut]:
    try:
        rows = list_user_stories(db, user_id=user["id"])
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to list stories for user %s", user["id"])
        raise api_error(500, "Failed to fetch stories") from exc
    return [StoryOut.model_validate(row) for row in rows]


@router.post("", response_model=StoryOut, status_code=status.HTTP_201_CREATED)
def create(payload: StoryCreateRequest, db: Session = Depends(get_db), user=Depends(get_current_user)) -> StoryOut:
    try:
        with db.begin():
            story = create_story(
                db,
                user_id=user["id"],
                title=payload.title,
                content=payload.content,
                cover_image_url=payload.cover_image_url,
            )
            out = StoryOut.model_validate(story)
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to save story")
        raise api_error(500, "Failed to save story") from exc
    return out


@router.get("/{story_id}", response_model=StoryOut)
def get_story(story_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> StoryOut:
    try:
        story = get_owned_story(db, story_id=story_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    return StoryOut.model_validate(story)


@router.put("/{story_id}", response_model=StoryOut)
def put_story(
    story_id: str,
    payload: StoryUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> StoryOut:
    fields = payload.model_fields_set
    changes = {}
    if "content" in fields:
        changes["content"] = payload.content
    if "cover_image_url" in fields:
        changes["cover_image_url"] = payload.cover_image_url

    try:
        with db.begin():
            story = update_story(
                db,
                story_id=story_id,
                user_id=user["id"],
                title=payload.title,
                published=payload.published,
                word_count=payload.word_count,
                **changes,
            )
            out = StoryOut.model_validate(story)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to update story %s", story_id)
        raise api_error(500, "Failed to update story") from exc
    return out


@router.delete("/{story_id}", response_model=StoryDeleteResponse)
def remove_story(story_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> StoryDeleteResponse:
    try:
        with db.begin():
            delete_story(db, story_id=story_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to delete story %s", story_id)
        raise api_error(500, "Failed to delete story") from exc
    return StoryDeleteResponse()
