from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from world_in_ink.db.session import get_db
from world_in_ink.errors import GraphValidationError, NotFoundError, api_error
from world_in_ink.modules.auth.dev_auth import get_current_user, get_optional_user
from world_in_ink.modules.story_graph.schemas import (
    ChoiceCreateRequest,
    ChoiceOut,
    ChoiceResponse,
    ChoiceUpdateRequest,
    ChoiceWithEndpoints,
    ConvertResponse,
    NodeCreateRequest,
    NodeDetail,
    NodeDetailResponse,
    NodeListResponse,
    NodeOut,
    NodeResponse,
    NodeUpdateRequest,
    StructureAuthor,
    StructureNode,
    StructureResponse,
    StructureStats,
    StructureStory,
    SuccessResponse,
)
from world_in_ink.modules.story_graph.service import (
    convert_to_interactive,
    create_choice,
    create_node,
    delete_choice,
    delete_node,
    get_node,
    get_structure,
    list_nodes,
    record_choice_taken,
    update_choice,
    update_node,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stories", tags=["story-graph"])


@router.post("/{story_id}/convert", response_model=ConvertResponse)
def convert_story(story_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> ConvertResponse:
    try:
        with db.begin():
            node = convert_to_interactive(db, story_id=story_id, user_id=user["id"])
            out = NodeOut.model_validate(node)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except GraphValidationError as exc:
        raise api_error(400, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to convert story %s", story_id)
        raise api_error(500, "Failed to convert story") from exc
    return ConvertResponse(start_node=out)


@router.get("/{story_id}/nodes", response_model=NodeListResponse)
def get_nodes(story_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)) -> NodeListResponse:
    try:
        nodes = list_nodes(db, story_id=story_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    return NodeListResponse(nodes=[NodeOut.model_validate(node) for node in nodes])


@router.post("/{story_id}/nodes", response_model=NodeResponse, status_code=status.HTTP_201_CREATED)
def post_node(
    story_id: str,
    payload: NodeCreateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> NodeResponse:
    try:
        with db.begin():
            node = create_node(
                db,
                story_id=story_id,
                user_id=user["id"],
                title=payload.title,
                content=payload.content,
                node_type=payload.node_type,
                is_start=payload.is_start,
                is_ending=payload.is_ending,
                position=payload.position,
            )
            out = NodeOut.model_validate(node)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to create node in story %s", story_id)
        raise api_error(500, "Failed to create node") from exc
    return NodeResponse(node=out)


@router.get("/{story_id}/nodes/{node_id}", response_model=NodeDetailResponse)
def get_single_node(story_id: str, node_id: str, db: Session = Depends(get_db)) -> NodeDetailResponse:
    try:
        node = get_node(db, story_id=story_id, node_id=node_id)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    return NodeDetailResponse(node=NodeDetail.model_validate(node))


@router.put("/{story_id}/nodes/{node_id}", response_model=NodeResponse)
def put_node(
    story_id: str,
    node_id: str,
    payload: NodeUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> NodeResponse:
    changes = payload.model_dump(include=payload.model_fields_set)
    try:
        with db.begin():
            node = update_node(db, story_id=story_id, node_id=node_id, user_id=user["id"], changes=changes)
            out = NodeOut.model_validate(node)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to update node %s", node_id)
        raise api_error(500, "Failed to update node") from exc
    return NodeResponse(node=out)


@router.delete("/{story_id}/nodes/{node_id}", response_model=SuccessResponse)
def remove_node(
    story_id: str,
    node_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> SuccessResponse:
    try:
        with db.begin():
            delete_node(db, story_id=story_id, node_id=node_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to delete node %s", node_id)
        raise api_error(500, "Failed to delete node") from exc
    return SuccessResponse(message="Node deleted")


@router.post("/{story_id}/choices", response_model=ChoiceResponse, status_code=status.HTTP_201_CREATED)
def post_choice(
    story_id: str,
    payload: ChoiceCreateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> ChoiceResponse:
    try:
        with db.begin():
            choice = create_choice(
                db,
                story_id=story_id,
                user_id=user["id"],
                from_node_id=payload.from_node_id,
                to_node_id=payload.to_node_id,
                text=payload.text,
                emoji=payload.emoji,
                position=payload.position,
            )
            out = ChoiceWithEndpoints.model_validate(choice)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except GraphValidationError as exc:
        raise api_error(400, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to create choice in story %s", story_id)
        raise api_error(500, "Failed to create choice") from exc
    return ChoiceResponse(choice=out)


@router.put("/{story_id}/choices/{choice_id}", response_model=ChoiceResponse)
def put_choice(
    story_id: str,
    choice_id: str,
    payload: ChoiceUpdateRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> ChoiceResponse:
    changes = payload.model_dump(include=payload.model_fields_set)
    try:
        with db.begin():
            choice = update_choice(db, story_id=story_id, choice_id=choice_id, user_id=user["id"], changes=changes)
            out = ChoiceWithEndpoints.model_validate(choice)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to update choice %s", choice_id)
        raise api_error(500, "Failed to update choice") from exc
    return ChoiceResponse(choice=out)


@router.delete("/{story_id}/choices/{choice_id}", response_model=SuccessResponse)
def remove_choice(
    story_id: str,
    choice_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
) -> SuccessResponse:
    try:
        with db.begin():
            delete_choice(db, story_id=story_id, choice_id=choice_id, user_id=user["id"])
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to delete choice %s", choice_id)
        raise api_error(500, "Failed to delete choice") from exc
    return SuccessResponse(message="Choice deleted")


@router.post("/{story_id}/choices/{choice_id}", response_model=SuccessResponse, response_model_exclude_none=True)
def record_choice(story_id: str, choice_id: str, db: Session = Depends(get_db)) -> SuccessResponse:
    try:
        with db.begin():
            record_choice_taken(db, choice_id=choice_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to record choice %s in story %s", choice_id, story_id)
        raise api_error(500, "Failed to record choice") from exc
    return SuccessResponse()


@router.get("/{story_id}/structure", response_model=StructureResponse)
def get_story_structure(
    story_id: str,
    db: Session = Depends(get_db),
    viewer=Depends(get_optional_user),
) -> StructureResponse:
    try:
        structure = get_structure(db, story_id=story_id, viewer_id=viewer["id"] if viewer else None)
    except NotFoundError as exc:
        raise api_error(404, str(exc)) from exc
    except PermissionError as exc:
        raise api_error(403, str(exc)) from exc

    story = structure.story
    return StructureResponse(
        story=StructureStory(
            id=story.id,
            title=story.title,
            is_interactive=story.is_interactive,
            published=story.published,
            cover_image_url=story.cover_image_url,
            author=StructureAuthor(id=story.author.id, name=story.author.name),
        ),
        nodes=[StructureNode.model_validate(node) for node in structure.nodes],
        choices=[ChoiceOut.model_validate(choice) for choice in structure.choices],
        stats=StructureStats(**asdict(structure.stats)),
    )
