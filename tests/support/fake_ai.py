from __future__ import annotations

import json

from world_in_ink.modules.llm.errors import LLMCallError


class FakeAIClient:
    """In-memory stand-in for OpenAIClient; queue responses, then inspect calls."""

    def __init__(self) -> None:
        self.chat_responses: list[object] = []
        self.chat_calls: list[dict] = []
        self.speech_audio = b"ID3-fake-audio"
        self.speech_error: Exception | None = None
        self.speech_calls: list[dict] = []
        self.thread_id = "thread_test"
        self.thread_error: Exception | None = None
        self.run_statuses: list[str] = []
        self.run_id = "run_test"
        self.added_messages: list[tuple[str, str]] = []
        self.created_runs: list[tuple[str, str]] = []
        self.retrieved_runs = 0
        self.thread_messages: list[dict] = []
        self.image_data: list[dict] = []
        self.image_error: Exception | None = None
        self.image_calls: list[dict] = []

    def queue_json(self, payload: dict) -> None:
        self.chat_responses.append(json.dumps(payload))

    def chat_completion(self, *, model, messages, temperature=None, max_tokens=None, json_mode=False) -> str:
        self.chat_calls.append(
            {
                "model": model,
                "messages": list(messages),
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if not self.chat_responses:
            raise LLMCallError("no fake chat response configured", status_code=500)
        outcome = self.chat_responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return str(outcome)

    def create_speech(self, *, model, voice, text, speed) -> bytes:
        self.speech_calls.append({"model": model, "voice": voice, "text": text, "speed": speed})
        if self.speech_error is not None:
            raise self.speech_error
        return self.speech_audio

    def generate_images(self, *, model, prompt, n, size) -> list[dict]:
        self.image_calls.append({"model": model, "prompt": prompt, "n": n, "size": size})
        if self.image_error is not None:
            raise self.image_error
        return list(self.image_data)

    def create_thread(self) -> str:
        if self.thread_error is not None:
            raise self.thread_error
        return self.thread_id

    def add_message(self, thread_id: str, content: str) -> dict:
        self.added_messages.append((thread_id, content))
        return {"id": "msg_user", "role": "user"}

    def create_run(self, thread_id: str, assistant_id: str) -> dict:
        self.created_runs.append((thread_id, assistant_id))
        return {"id": self.run_id, "status": "queued"}

    def retrieve_run(self, thread_id: str, run_id: str) -> dict:
        self.retrieved_runs += 1
        status = self.run_statuses.pop(0) if self.run_statuses else "completed"
        return {"id": run_id, "status": status}

    def list_messages(self, thread_id: str, *, order: str = "desc") -> list[dict]:
        return list(self.thread_messages)

    def close(self) -> None:
        return None


def assistant_message(text: str, *, run_id: str = "run_test") -> dict:
    return {
        "id": f"msg_{run_id}",
        "role": "assistant",
        "run_id": run_id,
        "content": [{"type": "text", "text": {"value": text, "annotations": []}}],
    }
