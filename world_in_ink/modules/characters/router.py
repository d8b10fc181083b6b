from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from world_in_ink.config import settings
from world_in_ink.db.session import get_db
from world_in_ink.errors import NotFoundError, api_error
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.characters.schemas import (
    CharacterCreateRequest,
    CharacterDeleteResponse,
    CharacterListResponse,
    CharacterOut,
    CharacterResponse,
    CharacterUpdateRequest,
    CharacterUpdateResponse,
    DiscoveredCharacter,
    DiscoverRequest,
    DiscoverResponse,
    LiveCharacter,
    LiveCharactersResponse,
)
from world_in_ink.modules.characters.service import (
    create_character,
    delete_character,
    discover_characters,
    get_owned_character,
    list_live_characters,
    list_user_characters,
    update_character,
)
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.deps import get_ai_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/characters", tags=["characters"])
story_router = APIRouter(prefix="/api/story", tags=["characters"])


@router.get("", response_model=CharacterListResponse)
def list_characters(db: Session = Depends(get_db), user=Depends(get_current_user)) -> CharacterListResponse:
    try:
        rows = list_user_characters(db, user_id=user["id"])
        characters = [CharacterOut.model_validate(row) for row in rows]
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to list characters for user %s", user["id"])
        raise api_error(500, "Failed to fetch characters") from exc
    return CharacterListResponse(characters=characters, total=len(characters))


@router.post("", response_model=CharacterResponse, status_code=status.HTTP_201_CREATED)
def create(payload: CharacterCreateRequest, db: Session = Depends(get_db), user=Depends(get_current_user)) -> CharacterResponse:
    try:
        with db.begin():
            character = create_character(
                db,
                user_id=user["id"],
                name=payload.name,
                backstory=payload.backstory,
                traits=payload.traits,
                voice_tone=payload.voice_tone,
                intervention_enabled=payload.intervention_enabled,
            )
            out = CharacterOut.model_validate(character)
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to create character")
        raise api_error(500, "Failed to create character") from exc
    return CharacterResponse(character=out)


@router.get("/{character_id}", response_model=CharacterResponse)
def get_character(character_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> CharacterResponse:
    try:
        character = get_owned_character(db, character_id=character_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    return CharacterResponse(character=CharacterOut.model_validate(character))


@router.put("/{character_id}", response_model=CharacterUpdateResponse)
def put_character(
    character_id: str,
    payload: CharacterUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> CharacterUpdateResponse:
    changes = payload.model_dump(exclude_unset=True, exclude={"personality"})
    personality = None
    if payload.personality is not None:
        personality = payload.personality.model_dump(exclude_unset=True, by_alias=True)

    try:
        with db.begin():
            character = update_character(
                db,
                character_id=character_id,
                user_id=user["id"],
                changes=changes,
                personality=personality,
            )
            out = CharacterOut.model_validate(character)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to update character %s", character_id)
        raise api_error(500, "Failed to update character") from exc
    return CharacterUpdateResponse(character=out)


@router.delete("/{character_id}", response_model=CharacterDeleteResponse)
def remove_character(
    character_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> CharacterDeleteResponse:
    try:
        with db.begin():
            delete_character(db, character_id=character_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to delete character %s", character_id)
        raise api_error(500, "Failed to delete character") from exc
    return CharacterDeleteResponse()


@story_router.get("/{story_id}/live-characters", response_model=LiveCharactersResponse)
def live_characters(story_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> LiveCharactersResponse:
    try:
        rows = list_live_characters(db, story_id=story_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to load live characters for story %s", story_id)
        raise api_error(500, "Failed to get characters") from exc
    return LiveCharactersResponse(characters=[LiveCharacter(**row) for row in rows])


@story_router.post("/discover-characters", response_model=DiscoverResponse)
def discover(
    payload: DiscoverRequest,
    db: Session = Depends(get_db),
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> DiscoverResponse:
    try:
        with db.begin():
            found = discover_characters(
                db,
                client,
                story_id=payload.story_id,
                user_id=user["id"],
                content=payload.content,
                model=settings.chat_model,
            )
            characters = [
                DiscoveredCharacter(
                    id=item.character.id,
                    name=item.character.name,
                    role=item.role,
                    personality=item.personality,
                )
                for item in found
            ]
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("character discovery failed for story %s", payload.story_id)
        raise api_error(500, "Failed to discover characters") from exc

    if not characters:
        return DiscoverResponse(characters=[], message="No characters found in story")
    return DiscoverResponse(characters=characters, message=f"{len(characters)} characters discovered")
