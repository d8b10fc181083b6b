from __future__ import annotations

from fastapi import Request

from world_in_ink.config import Settings
from world_in_ink.modules.llm.client import OpenAIClient


def build_ai_client(settings: Settings) -> OpenAIClient:
    return OpenAIClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout_s=settings.openai_timeout_s,
    )


def get_ai_client(request: Request) -> OpenAIClient:
    return request.app.state.ai_client
