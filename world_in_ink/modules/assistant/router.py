from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from world_in_ink.config import settings
from world_in_ink.errors import api_error
from world_in_ink.modules.assistant.cover import all_stored, generate_cover_images
from world_in_ink.modules.assistant.schemas import (
    ChatRequest,
    ChatResponse,
    CoverRequest,
    CoverResponse,
    GrammarRequest,
    ThreadResponse,
    TTSRequest,
)
from world_in_ink.modules.assistant.service import (
    AssistantRunError,
    check_grammar,
    open_thread,
    send_message,
    synthesize_speech,
)
from world_in_ink.modules.assistant.tts import VALID_VOICES
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.llm.deps import get_ai_client
from world_in_ink.modules.llm.errors import LLMCallError, LLMOutputValidationError
from world_in_ink.modules.upload.storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


@router.post("/thread", response_model=ThreadResponse)
def create_thread(client: OpenAIClient = Depends(get_ai_client)) -> ThreadResponse:
    try:
        thread_id = open_thread(client)
    except Exception as exc:  # noqa: BLE001
        logger.exception("failed to create assistant thread")
        raise api_error(500, "Failed to create thread") from exc
    return ThreadResponse(thread_id=thread_id)


@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest, client: OpenAIClient = Depends(get_ai_client)) -> ChatResponse:
    if not payload.thread_id or not payload.message:
        raise api_error(400, "Missing threadId or message")
    if not settings.assistant_id:
        raise api_error(500, "ASSISTANT_ID is not configured")

    try:
        reply = send_message(
            client,
            thread_id=payload.thread_id,
            message=payload.message,
            assistant_id=settings.assistant_id,
            poll_interval_s=settings.assistant_poll_interval_s,
            max_polls=settings.assistant_max_polls,
        )
    except AssistantRunError as exc:
        raise api_error(500, str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("assistant chat failed for thread %s", payload.thread_id)
        raise api_error(500, "Failed to process assistant response") from exc
    return ChatResponse(response=reply)


@router.post("/grammar")
def grammar(
    payload: GrammarRequest,
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> dict:
    if not payload.text:
        raise api_error(400, "Text is required")
    try:
        return check_grammar(
            client,
            model=settings.chat_model,
            text=payload.text,
            context=payload.context,
            writing_style=payload.writing_style,
            filters=payload.filters,
            confidence_threshold=payload.confidence_threshold,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("grammar check failed for user %s", user["id"])
        raise api_error(500, "Internal Server Error") from exc


@router.post("/tts")
def text_to_speech(
    payload: TTSRequest,
    client: OpenAIClient = Depends(get_ai_client),
    user=Depends(get_current_user),
) -> Response:
    if not payload.text or not isinstance(payload.text, str):
        raise api_error(400, "Text is required")
    if not payload.text.strip():
        raise api_error(400, "Text cannot be empty")
    if payload.voice not in VALID_VOICES:
        raise api_error(400, f"Invalid voice. Must be one of: {', '.join(VALID_VOICES)}")

    try:
        audio = synthesize_speech(
            client,
            model=settings.tts_model,
            text=payload.text,
            voice=payload.voice,
            speed=payload.speed,
        )
    except LLMCallError as exc:
        logger.exception("tts request failed for user %s", user["id"])
        if exc.status_code == 429:
            raise api_error(429, "Rate limit exceeded. Please try again later.") from exc
        if exc.status_code == 400:
            raise api_error(400, "Invalid request to OpenAI TTS API.") from exc
        raise api_error(500, "Failed to generate audio. Please try again.") from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("tts failed for user %s", user["id"])
        raise api_error(500, "Failed to generate audio. Please try again.") from exc

    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Cache-Control": "no-cache"},
    )


def _cover_provider_error(exc: LLMCallError) -> HTTPException:
    if isinstance(exc.__cause__, httpx.TimeoutException):
        return api_error(504, "Request timeout: Image generation took too long. Please try again.")
    if exc.status_code is None:
        return api_error(503, "Network error: Unable to connect to OpenAI. Please check your internet connection.")
    if exc.status_code == 400:
        return api_error(
            400,
            "Invalid request to image generation service",
            details="Please try a shorter or simpler description",
        )
    if exc.status_code == 401:
        return api_error(500, "OpenAI API authentication failed. Please check your API key.")
    if exc.status_code == 429:
        return api_error(429, "Rate limit exceeded. Please try again in a few moments.")
    return api_error(500, "Failed to generate cover image. Please try again.")


@router.post("/cover", response_model=CoverResponse)
def generate_cover(
    payload: CoverRequest,
    client: OpenAIClient = Depends(get_ai_client),
    storage: Storage = Depends(get_storage),
    user=Depends(get_current_user),
) -> CoverResponse:
    if not payload.description:
        raise api_error(400, "Description is required")

    try:
        images = generate_cover_images(
            client,
            storage,
            description=payload.description,
            model=settings.image_model,
            n=settings.cover_image_count,
            size=settings.cover_image_size,
        )
    except LLMCallError as exc:
        logger.exception("cover generation failed for user %s", user["id"])
        raise _cover_provider_error(exc) from exc
    except LLMOutputValidationError as exc:
        logger.exception("invalid image generation response for user %s", user["id"])
        raise api_error(500, "Invalid response from image generation service") from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("cover generation failed for user %s", user["id"])
        raise api_error(500, "An unexpected error occurred. Please try again.") from exc

    if not images:
        raise api_error(500, "Failed to process any generated images. Please try again.")
    info = "Images stored permanently" if all_stored(images) else "Images embedded as Data URLs"
    return CoverResponse(images=images, info=info)
