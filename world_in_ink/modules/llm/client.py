"""Synchronous OpenAI REST client shared by every AI feature.

One instance is built at application startup and injected into routes; it
owns a pooled ``httpx.Client`` and is closed at shutdown.
"""

from __future__ import annotations

from typing import Literal, TypedDict

import httpx

from world_in_ink.modules.llm.errors import LLMCallError, LLMOutputValidationError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
ASSISTANTS_BETA_HEADER = {"OpenAI-Beta": "assistants=v2"}


class ChatCompletionMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


def _extract_content(response_payload: dict) -> str:
    try:
        choices = response_payload["choices"]
        if not isinstance(choices, list) or not choices:
            raise KeyError("choices")
        message = choices[0]["message"]
        if not isinstance(message, dict):
            raise KeyError("message")
        content = message["content"]
    except Exception as exc:  # noqa: BLE001
        raise LLMOutputValidationError("Missing choices[0].message.content") from exc
    if not isinstance(content, str):
        raise LLMOutputValidationError("Missing choices[0].message.content")
    return content


def message_text(message: dict) -> str:
    """Join the text parts of an assistant thread message with newlines."""
    parts: list[str] = []
    for item in message.get("content") or []:
        if not isinstance(item, dict) or item.get("type") != "text":
            continue
        text = item.get("text") or {}
        parts.append(str(text.get("value", "")) if isinstance(text, dict) else str(text))
    return "\n".join(parts)


class OpenAIClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout=timeout_s),
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
        beta: bool = False,
    ) -> httpx.Response:
        headers = dict(ASSISTANTS_BETA_HEADER) if beta else None
        try:
            response = self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise LLMCallError(f"{method} {path} failed: {exc}") from exc
        if response.status_code // 100 != 2:
            raise LLMCallError(
                f"{method} {path} non-2xx: {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def chat_completion(
        self,
        *,
        model: str,
        messages: list[ChatCompletionMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        payload: dict = {"model": model, "messages": list(messages)}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        response = self._request("POST", "/chat/completions", json=payload)
        return _extract_content(response.json())

    def create_speech(self, *, model: str, voice: str, text: str, speed: float) -> bytes:
        payload = {"model": model, "voice": voice, "input": text, "speed": speed}
        return self._request("POST", "/audio/speech", json=payload).content

    def generate_images(self, *, model: str, prompt: str, n: int, size: str) -> list[dict]:
        """Request ``n`` images as base64 payloads; returns the provider's ``data`` items."""
        payload = {"model": model, "prompt": prompt, "n": n, "size": size, "response_format": "b64_json"}
        data = self._request("POST", "/images/generations", json=payload).json().get("data")
        if not isinstance(data, list):
            raise LLMOutputValidationError("Missing data in image generation response")
        return data

    def create_thread(self) -> str:
        return str(self._request("POST", "/threads", json={}, beta=True).json()["id"])

    def add_message(self, thread_id: str, content: str) -> dict:
        payload = {"role": "user", "content": content}
        return self._request("POST", f"/threads/{thread_id}/messages", json=payload, beta=True).json()

    def create_run(self, thread_id: str, assistant_id: str) -> dict:
        payload = {"assistant_id": assistant_id}
        return self._request("POST", f"/threads/{thread_id}/runs", json=payload, beta=True).json()

    def retrieve_run(self, thread_id: str, run_id: str) -> dict:
        return self._request("GET", f"/threads/{thread_id}/runs/{run_id}", beta=True).json()

    def list_messages(self, thread_id: str, *, order: str = "desc") -> list[dict]:
        body = self._request("GET", f"/threads/{thread_id}/messages", params={"order": order}, beta=True).json()
        return list(body.get("data") or [])


__all__ = [
    "ChatCompletionMessage",
    "LLMCallError",
    "LLMOutputValidationError",
    "OpenAIClient",
    "message_text",
]
