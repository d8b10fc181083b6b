from __future__ import annotations

from typing import Any

from world_in_ink.modules.assistant.tts import DEFAULT_VOICE
from world_in_ink.schemas import CamelModel


class ThreadResponse(CamelModel):
    thread_id: str


class ChatRequest(CamelModel):
    thread_id: str | None = None
    message: str | None = None


class ChatResponse(CamelModel):
    response: str


class GrammarRequest(CamelModel):
    text: str | None = None
    context: str | None = None
    writing_style: str | None = None
    filters: list[str] | None = None
    confidence_threshold: float | None = None


class TTSRequest(CamelModel):
    # Loosely typed so the route can answer with its own messages.
    text: Any = None
    voice: str = DEFAULT_VOICE
    speed: Any = 1


class CoverRequest(CamelModel):
    description: str | None = None


class CoverResponse(CamelModel):
    images: list[str]
    info: str
