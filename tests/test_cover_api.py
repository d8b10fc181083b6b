from __future__ import annotations

import base64
import os

import httpx
from fastapi.testclient import TestClient

from world_in_ink.config import settings
from world_in_ink.modules.assistant.cover import (
    COVER_PROMPT_PREFIX,
    COVER_PROMPT_SUFFIX,
    MAX_PROMPT_CHARS,
    optimize_prompt_for_cover,
)
from world_in_ink.modules.llm.errors import LLMCallError
from world_in_ink.modules.upload.storage import Storage, get_storage
from tests.support.api import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\ncover"
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


class FailingStorage(Storage):
    def save_bytes(self, data: bytes, *, name: str, content_type: str | None = None) -> str:
        raise OSError("disk full")


def _post(client: TestClient, description="A lighthouse at the end of the world"):
    return client.post("/api/assistant/cover", json={"description": description}, headers=auth_headers())


def test_short_description_is_wrapped_and_collapsed() -> None:
    prompt = optimize_prompt_for_cover("  A quiet\n\n harbor   town ")
    assert prompt == COVER_PROMPT_PREFIX + "A quiet harbor town" + COVER_PROMPT_SUFFIX


def test_long_description_is_cut_to_the_prompt_limit() -> None:
    room = MAX_PROMPT_CHARS - len(COVER_PROMPT_PREFIX) - len(COVER_PROMPT_SUFFIX)

    exact = "x" * room
    assert optimize_prompt_for_cover(exact) == COVER_PROMPT_PREFIX + exact + COVER_PROMPT_SUFFIX

    prompt = optimize_prompt_for_cover("word " * 400)
    assert len(prompt) == MAX_PROMPT_CHARS
    assert prompt.startswith(COVER_PROMPT_PREFIX)
    assert prompt.endswith("..." + COVER_PROMPT_SUFFIX)


def test_cover_images_are_stored_and_unusable_ones_dropped(client: TestClient, fake_ai) -> None:
    fake_ai.image_data = [{"b64_json": PNG_B64}, {"url": "https://img.test/1.png"}, {"b64_json": PNG_B64}]

    resp = _post(client)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["info"] == "Images stored permanently"
    assert len(body["images"]) == 2
    for url in body["images"]:
        assert url.startswith("/uploads/cover-")
        assert url.endswith(".png")
        with open(os.path.join(settings.upload_dir, url.rsplit("/", 1)[1]), "rb") as f:
            assert f.read() == PNG_BYTES

    assert fake_ai.image_calls == [
        {
            "model": "dall-e-2",
            "prompt": optimize_prompt_for_cover("A lighthouse at the end of the world"),
            "n": 4,
            "size": "1024x1024",
        }
    ]


def test_storage_failure_falls_back_to_data_urls(client: TestClient, fake_ai) -> None:
    client.app.dependency_overrides[get_storage] = lambda: FailingStorage()
    fake_ai.image_data = [{"b64_json": PNG_B64}]

    resp = _post(client)
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "images": [f"data:image/png;base64,{PNG_B64}"],
        "info": "Images embedded as Data URLs",
    }


def test_no_usable_image_is_an_error(client: TestClient, fake_ai) -> None:
    fake_ai.image_data = [{"b64_json": ""}, {"b64_json": "not base64!"}]
    resp = _post(client)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to process any generated images. Please try again."


def test_cover_requires_description_and_auth(client: TestClient, fake_ai) -> None:
    resp = _post(client, description="")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Description is required"}

    resp = client.post("/api/assistant/cover", json={"description": "A castle"})
    assert resp.status_code == 401
    assert fake_ai.image_calls == []


def test_provider_errors_are_mapped(client: TestClient, fake_ai) -> None:
    cases = [
        (LLMCallError("bad", status_code=400), 400, "Invalid request to image generation service"),
        (LLMCallError("key", status_code=401), 500, "OpenAI API authentication failed. Please check your API key."),
        (LLMCallError("slow", status_code=429), 429, "Rate limit exceeded. Please try again in a few moments."),
        (LLMCallError("down", status_code=502), 500, "Failed to generate cover image. Please try again."),
        (
            LLMCallError("refused"),
            503,
            "Network error: Unable to connect to OpenAI. Please check your internet connection.",
        ),
    ]
    for error, status, message in cases:
        fake_ai.image_error = error
        resp = _post(client)
        assert resp.status_code == status
        assert resp.json()["error"] == message

    fake_ai.image_error = LLMCallError("bad", status_code=400)
    assert _post(client).json()["details"] == "Please try a shorter or simpler description"


def test_provider_timeout(client: TestClient, fake_ai) -> None:
    error = LLMCallError("POST /images/generations failed")
    error.__cause__ = httpx.ReadTimeout("timed out")
    fake_ai.image_error = error

    resp = _post(client)
    assert resp.status_code == 504
    assert resp.json()["error"] == "Request timeout: Image generation took too long. Please try again."
