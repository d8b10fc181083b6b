from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from world_in_ink.config import settings
from world_in_ink.db.session import get_db
from world_in_ink.errors import api_error
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.intervention.contextual import decide_contextual_intervention
from world_in_ink.modules.intervention.schemas import (
    CharacterInterveneRequest,
    ContextualIntervention,
    ContextualInterventionRequest,
    ContextualInterventionResponse,
    Intervention,
    InterventionRequest,
    InterventionResponse,
)
from world_in_ink.modules.intervention.service import check_all_characters
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.deps import get_ai_client
from world_in_ink.utils.time import utc_now_aware

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["intervention"])
character_router = APIRouter(prefix="/api/character", tags=["intervention"])


def _check_story(
    db: Session,
    client: OpenAIClient,
    *,
    user_id: str,
    story_id: str,
    current_text: str,
    recent_text: str,
    character_ids: list[str] | None = None,
) -> InterventionResponse:
    logger.info("checking interventions for story %s", story_id)
    try:
        with db.begin():
            found = check_all_characters(
                db,
                client,
                story_id=story_id,
                user_id=user_id,
                current_text=current_text,
                recent_text=recent_text,
                model=settings.chat_model,
                character_ids=character_ids,
            )
    except Exception as exc:  # noqa: BLE001
        logger.exception("intervention check failed for story %s", story_id)
        raise api_error(500, "INTERVENTION_FAILED", "Failed to check for character interventions") from exc

    if found is None:
        return InterventionResponse(should_intervene=False)

    intervention = Intervention.model_validate(
        {**found, "id": str(uuid.uuid4()), "timestamp": utc_now_aware()}
    )
    logger.info("%s intervened: %s", intervention.character_name, intervention.type)
    return InterventionResponse(should_intervene=True, intervention=intervention)


@router.post("/intervention", response_model=InterventionResponse, response_model_exclude_none=True)
def check_intervention(
    payload: InterventionRequest,
    db: Session = Depends(get_db),
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> InterventionResponse:
    return _check_story(
        db,
        client,
        user_id=user["id"],
        story_id=payload.story_id,
        current_text=payload.current_text,
        recent_text=payload.recent_text,
        character_ids=payload.character_ids,
    )


@character_router.post("/intervene", response_model=InterventionResponse, response_model_exclude_none=True)
def character_intervene(
    payload: CharacterInterveneRequest,
    db: Session = Depends(get_db),
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> InterventionResponse:
    return _check_story(
        db,
        client,
        user_id=user["id"],
        story_id=payload.story_id,
        current_text=payload.current_text,
        recent_text=payload.recent_addition,
    )


@router.post(
    "/contextual-intervention",
    response_model=ContextualInterventionResponse,
    response_model_exclude_none=True,
)
def contextual_intervention(
    payload: ContextualInterventionRequest,
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> ContextualInterventionResponse:
    logger.info("contextual intervention requested for character %s", payload.character_id)
    try:
        found = decide_contextual_intervention(
            client,
            model=settings.chat_model,
            character_name=payload.character_name,
            character_personality=payload.character_personality,
            story_content=payload.story_content,
            recent_addition=payload.recent_addition,
            force=payload.force_intervention,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("contextual intervention failed for user %s", user["id"])
        raise api_error(500, "Failed to generate intervention") from exc

    if found is None:
        return ContextualInterventionResponse(should_intervene=False)
    return ContextualInterventionResponse(should_intervene=True, intervention=ContextualIntervention(**found))
