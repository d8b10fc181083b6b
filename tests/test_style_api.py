from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from world_in_ink.db import session as db_session
from world_in_ink.db.models import WritingStyle
from world_in_ink.modules.llm.errors import LLMCallError
from world_in_ink.utils.time import utc_now_naive
from tests.support.api import auth_headers, create_story

# Ten words per repetition, with dialogue, third person and past tense.
PROSE = 'She walked through the silent forest. "Stay close," she said. ' * 160


def _seed_stories(client: TestClient, count: int = 3) -> None:
    for index in range(count):
        create_story(client, title=f"Story {index}", content=PROSE)


def _update_profile(**values) -> None:
    with db_session.SessionLocal() as db:
        profile = db.execute(select(WritingStyle)).scalar_one()
        for key, value in values.items():
            setattr(profile, key, value)
        db.commit()


def test_eligibility_reports_missing_stories(client: TestClient) -> None:
    resp = client.get("/api/style/analyze", headers=auth_headers())
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "eligibility": {
            "eligible": False,
            "currentStories": 0,
            "currentWords": 0,
            "message": "You need at least 2 stories. You currently have 0.",
        },
    }


def test_eligibility_reports_missing_words(client: TestClient) -> None:
    create_story(client, content="one two three")
    create_story(client, content="four five")
    eligibility = client.get("/api/style/analyze", headers=auth_headers()).json()["eligibility"]
    assert eligibility["eligible"] is False
    assert eligibility["currentWords"] == 5
    assert eligibility["message"] == "You need at least 3000 words in total. You currently have 5."


def test_eligibility_counts_drafts(client: TestClient) -> None:
    _seed_stories(client)
    eligibility = client.get("/api/style/analyze", headers=auth_headers()).json()["eligibility"]
    assert eligibility == {
        "eligible": True,
        "currentStories": 3,
        "currentWords": 4800,
        "message": "You have enough data to analyze your style.",
    }


def test_analyze_insufficient_data(client: TestClient, fake_ai) -> None:
    create_story(client, content="just a few words")
    resp = client.post("/api/style/analyze", headers=auth_headers())
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "INSUFFICIENT_DATA",
        "message": "You need at least 2 stories. You currently have 1.",
        "needsMoreData": {
            "currentStories": 1,
            "currentWords": 4,
            "minStoriesNeeded": 2,
            "minWordsNeeded": 3000,
        },
    }
    assert fake_ai.chat_calls == []


def test_analyze_builds_profile_with_ai_reading(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    fake_ai.queue_json(
        {
            "tones": ["dark", "poetic"],
            "writingPace": "slow",
            "descriptiveDensity": "rich",
            "dialogueStyle": "minimalist",
            "literaryMovement": "gothic",
            "similarAuthors": [{"name": "Shirley Jackson", "similarity": 0.8}],
        }
    )

    resp = client.post("/api/style/analyze", json={"forceReanalyze": False}, headers=auth_headers())
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Style analysis completed successfully"
    profile = body["profile"]
    assert profile["narrativeVoice"] == "third-person-limited"
    assert profile["preferredTense"] == "past"
    assert profile["dominantTones"] == ["dark", "poetic"]
    assert profile["writingPace"] == "slow"
    assert profile["literaryMovement"] == "gothic"
    assert profile["similarAuthors"][0]["name"] == "Shirley Jackson"
    assert profile["analyzedStories"] == 3
    assert profile["totalWordsAnalyzed"] == 4800
    assert profile["dialogueFrequency"] > 0
    assert profile["confidence"] == pytest.approx(0.09 + 0.072 + 0.3 + 0.1)
    assert profile["signaturePhrases"]["stay close"] == 480
    assert {example["exampleType"] for example in profile["examples"]} == {"OPENING", "DIALOGUE", "EMOTIONAL"}
    assert all(example["storyTitle"].startswith("Story ") for example in profile["examples"])
    assert all(len(example["text"]) <= 1000 for example in profile["examples"])

    call = fake_ai.chat_calls[0]
    assert call["json_mode"] is True
    assert call["max_tokens"] == 1000


def test_analyze_falls_back_when_ai_fails(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    resp = client.post("/api/style/analyze", headers=auth_headers())
    assert resp.status_code == 200
    profile = resp.json()["profile"]
    assert profile["dominantTones"] == ["narrative"]
    assert profile["writingPace"] == "moderate"
    assert profile["dialogueStyle"] == "natural"
    assert profile["similarAuthors"] == []


def test_recent_confident_profile_is_reused(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    first = client.post("/api/style/analyze", headers=auth_headers()).json()["profile"]
    _update_profile(confidence=0.9, last_analyzed=utc_now_naive())

    reused = client.post("/api/style/analyze", headers=auth_headers()).json()["profile"]
    assert reused["id"] == first["id"]
    assert reused["confidence"] == 0.9
    assert len(fake_ai.chat_calls) == 1

    forced = client.post("/api/style/analyze", json={"forceReanalyze": True}, headers=auth_headers()).json()["profile"]
    assert forced["id"] == first["id"]
    assert forced["confidence"] < 0.9
    assert len(fake_ai.chat_calls) == 2


def test_stale_profile_is_reanalyzed(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    client.post("/api/style/analyze", headers=auth_headers())
    _update_profile(confidence=0.9, last_analyzed=utc_now_naive() - timedelta(days=8))

    refreshed = client.post("/api/style/analyze", headers=auth_headers()).json()["profile"]
    assert refreshed["confidence"] < 0.9
    assert len(fake_ai.chat_calls) == 2


def test_generate_in_user_style(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    fake_ai.chat_responses.append(LLMCallError("analysis unavailable", status_code=503))
    client.post("/api/style/analyze", headers=auth_headers())
    fake_ai.chat_responses.append("The forest held its breath.")

    resp = client.post(
        "/api/style/generate",
        json={"prompt": "Continue the walk at dusk", "context": "Night falls.", "maxLength": 100, "temperature": 0.2},
        headers=auth_headers(),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["generatedText"] == "The forest held its breath."
    assert body["usedStyle"] is True
    assert body["styleConfidence"] == pytest.approx(0.562)

    call = fake_ai.chat_calls[-1]
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 200
    assert call["json_mode"] is False
    assert "Narrative voice: third-person-limited" in call["messages"][0]["content"]
    assert "Continue the walk at dusk" in call["messages"][1]["content"]


def test_generate_requires_profile(client: TestClient) -> None:
    resp = client.post("/api/style/generate", json={"prompt": "Continue the story"}, headers=auth_headers())
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "NO_STYLE_PROFILE",
        "message": "You must analyze your style before generating personalized text",
    }


def test_generate_rejects_low_confidence(client: TestClient) -> None:
    _seed_stories(client)
    client.post("/api/style/analyze", headers=auth_headers())
    _update_profile(confidence=0.3)

    resp = client.post("/api/style/generate", json={"prompt": "Continue the story"}, headers=auth_headers())
    assert resp.status_code == 400
    assert resp.json()["error"] == "LOW_CONFIDENCE"


def test_generate_validation(client: TestClient) -> None:
    short = client.post("/api/style/generate", json={"prompt": "short"}, headers=auth_headers())
    assert short.status_code == 400
    assert short.json()["message"] == "The prompt must be at least 10 characters"

    too_small = client.post(
        "/api/style/generate",
        json={"prompt": "Continue the story", "maxLength": 10},
        headers=auth_headers(),
    )
    assert too_small.status_code == 400
    assert too_small.json()["error"] == "VALIDATION_ERROR"

    too_hot = client.post(
        "/api/style/generate",
        json={"prompt": "Continue the story", "temperature": 1.5},
        headers=auth_headers(),
    )
    assert too_hot.status_code == 400


def test_generate_provider_failure(client: TestClient, fake_ai) -> None:
    _seed_stories(client)
    client.post("/api/style/analyze", headers=auth_headers())

    resp = client.post("/api/style/generate", json={"prompt": "Continue the story"}, headers=auth_headers())
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "GENERATION_FAILED",
        "message": "Failed to generate text in your style",
    }


def test_profile_read_and_delete(client: TestClient) -> None:
    missing = client.get("/api/style/profile", headers=auth_headers())
    assert missing.status_code == 404
    assert missing.json()["error"] == "NOT_FOUND"
    assert client.delete("/api/style/profile", headers=auth_headers()).status_code == 404

    _seed_stories(client)
    analyzed = client.post("/api/style/analyze", headers=auth_headers()).json()["profile"]

    profile = client.get("/api/style/profile", headers=auth_headers()).json()["profile"]
    assert profile["id"] == analyzed["id"]
    assert len(profile["examples"]) <= 10

    deleted = client.delete("/api/style/profile", headers=auth_headers())
    assert deleted.json() == {"success": True, "message": "Style profile deleted successfully"}
    assert client.get("/api/style/profile", headers=auth_headers()).status_code == 404


def test_style_routes_require_auth(client: TestClient) -> None:
    assert client.get("/api/style/analyze").status_code == 401
    assert client.get("/api/style/profile").status_code == 401
