from __future__ import annotations

import json

import httpx
import pytest

from world_in_ink.modules.llm.client import OpenAIClient, message_text
from world_in_ink.modules.llm.errors import LLMCallError, LLMOutputValidationError


def _client(handler) -> OpenAIClient:
    return OpenAIClient(api_key="sk-test", base_url="https://llm.test/v1/", transport=httpx.MockTransport(handler))


def test_chat_completion_sends_json_mode_payload() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["beta"] = request.headers.get("openai-beta")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": '{"ok": true}'}}]})

    client = _client(handler)
    try:
        content = client.chat_completion(
            model="gpt-test",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0.3,
            max_tokens=50,
            json_mode=True,
        )
    finally:
        client.close()

    assert content == '{"ok": true}'
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["beta"] is None
    assert seen["body"] == {
        "model": "gpt-test",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.3,
        "max_tokens": 50,
        "response_format": {"type": "json_object"},
    }


def test_chat_completion_omits_unset_options() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": "plain"}}]})

    client = _client(handler)
    assert client.chat_completion(model="m", messages=[{"role": "user", "content": "x"}]) == "plain"
    assert set(bodies[0]) == {"model", "messages"}


def test_chat_completion_missing_content() -> None:
    client = _client(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(LLMOutputValidationError):
        client.chat_completion(model="m", messages=[{"role": "user", "content": "x"}])


def test_non_2xx_carries_status_code() -> None:
    client = _client(lambda request: httpx.Response(429, json={"error": {"message": "slow down"}}))
    with pytest.raises(LLMCallError) as excinfo:
        client.create_speech(model="tts-1", voice="nova", text="hi", speed=1.0)
    assert excinfo.value.status_code == 429


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    with pytest.raises(LLMCallError) as excinfo:
        client.create_thread()
    assert excinfo.value.status_code is None


def test_speech_returns_raw_bytes() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"\xff\xfbaudio", headers={"content-type": "audio/mpeg"})

    audio = _client(handler).create_speech(model="tts-1", voice="echo", text="hello", speed=1.5)
    assert audio == b"\xff\xfbaudio"
    assert seen["body"] == {"model": "tts-1", "voice": "echo", "input": "hello", "speed": 1.5}


def test_assistant_endpoints_use_beta_header() -> None:
    calls: list[tuple[str, str, str | None]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, request.headers.get("openai-beta")))
        path = request.url.path
        if path.endswith("/threads"):
            return httpx.Response(200, json={"id": "thread_1"})
        if path.endswith("/messages") and request.method == "POST":
            return httpx.Response(200, json={"id": "msg_1", "role": "user"})
        if path.endswith("/runs"):
            return httpx.Response(200, json={"id": "run_1", "status": "queued"})
        if "/runs/" in path:
            return httpx.Response(200, json={"id": "run_1", "status": "completed"})
        assert request.url.params["order"] == "desc"
        return httpx.Response(200, json={"data": [{"id": "msg_2", "role": "assistant"}]})

    client = _client(handler)
    assert client.create_thread() == "thread_1"
    client.add_message("thread_1", "hello")
    assert client.create_run("thread_1", "asst_1")["status"] == "queued"
    assert client.retrieve_run("thread_1", "run_1")["status"] == "completed"
    assert client.list_messages("thread_1") == [{"id": "msg_2", "role": "assistant"}]

    assert [call[1] for call in calls] == [
        "/v1/threads",
        "/v1/threads/thread_1/messages",
        "/v1/threads/thread_1/runs",
        "/v1/threads/thread_1/runs/run_1",
        "/v1/threads/thread_1/messages",
    ]
    assert all(call[2] == "assistants=v2" for call in calls)


def test_message_text_joins_text_parts() -> None:
    message = {
        "content": [
            {"type": "text", "text": {"value": "First", "annotations": []}},
            {"type": "image_file", "image_file": {"file_id": "file_1"}},
            {"type": "text", "text": {"value": "Second"}},
        ]
    }
    assert message_text(message) == "First\nSecond"
    assert message_text({"content": None}) == ""


def test_generate_images_requests_base64_payloads() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"created": 1, "data": [{"b64_json": "aGVsbG8="}]})

    images = _client(handler).generate_images(model="dall-e-2", prompt="a cover", n=4, size="1024x1024")
    assert images == [{"b64_json": "aGVsbG8="}]
    assert seen["path"] == "/v1/images/generations"
    assert seen["body"] == {
        "model": "dall-e-2",
        "prompt": "a cover",
        "n": 4,
        "size": "1024x1024",
        "response_format": "b64_json",
    }


def test_generate_images_without_data() -> None:
    client = _client(lambda request: httpx.Response(200, json={"created": 1}))
    with pytest.raises(LLMOutputValidationError):
        client.generate_images(model="dall-e-2", prompt="a cover", n=1, size="256x256")
