from __future__ import annotations

from fastapi.testclient import TestClient

from world_in_ink.db import session as db_session
from world_in_ink.db.models import Character, Story
from tests.support.api import auth_headers, create_story


def _create_character(client: TestClient, name: str = "Aria", user_id: str = "user-1", **extra) -> dict:
    resp = client.post("/api/characters", json={"name": name, **extra}, headers=auth_headers(user_id))
    assert resp.status_code == 201, resp.text
    return resp.json()["character"]


def _link(story_id: str, character_id: str) -> None:
    with db_session.SessionLocal() as db:
        story = db.get(Story, story_id)
        story.characters.append(db.get(Character, character_id))
        db.commit()


def test_create_character_defaults(client: TestClient) -> None:
    resp = client.post("/api/characters", json={"name": "Aria"}, headers=auth_headers())
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    character = body["character"]
    assert character["backstory"] == ""
    assert character["traits"] == []
    assert character["voiceTone"] == "neutral"
    assert character["interventionEnabled"] is True
    assert character["interventionStyle"] == "suggestion"
    assert character["interventionFrequency"] == "medium"
    assert character["totalInterventions"] == 0


def test_create_character_requires_name(client: TestClient) -> None:
    resp = client.post("/api/characters", json={"backstory": "nobody"}, headers=auth_headers())
    assert resp.status_code == 400
    assert resp.json()["message"] == "Name is required"


def test_list_characters_with_linked_stories(client: TestClient) -> None:
    story = create_story(client, title="Saga")
    aria = _create_character(client, "Aria")
    _create_character(client, "Bram")
    _create_character(client, "Other", user_id="someone-else")
    _link(story["id"], aria["id"])

    resp = client.get("/api/characters", headers=auth_headers())
    body = resp.json()
    assert body["total"] == 2
    by_name = {item["name"]: item for item in body["characters"]}
    assert set(by_name) == {"Aria", "Bram"}
    assert by_name["Aria"]["stories"] == [{"id": story["id"], "title": "Saga"}]
    assert by_name["Bram"]["stories"] == []


def test_update_character_merges_personality(client: TestClient) -> None:
    character = _create_character(client)
    url = f"/api/characters/{character['id']}"

    client.put(url, json={"personality": {"temperament": "calm", "humor": "witty"}}, headers=auth_headers())
    resp = client.put(
        url,
        json={
            "personality": {"humor": "dark", "speakingStyle": "poetic"},
            "voiceTone": "mysterious",
            "triggerWords": ["dragon"],
            "interventionFrequency": "high",
        },
        headers=auth_headers(),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Character updated successfully"
    updated = body["character"]
    assert updated["personality"] == {"temperament": "calm", "humor": "dark", "speakingStyle": "poetic"}
    assert updated["voiceTone"] == "mysterious"
    assert updated["triggerWords"] == ["dragon"]
    assert updated["interventionFrequency"] == "high"


def test_update_character_rejects_unknown_enum(client: TestClient) -> None:
    character = _create_character(client)
    resp = client.put(
        f"/api/characters/{character['id']}",
        json={"interventionStyle": "shouting"},
        headers=auth_headers(),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"


def test_foreign_character_is_not_found(client: TestClient) -> None:
    character = _create_character(client, user_id="owner")
    url = f"/api/characters/{character['id']}"
    for method in ("get", "delete"):
        resp = getattr(client, method)(url, headers=auth_headers("intruder"))
        assert resp.status_code == 404
        assert resp.json()["error"] == "Character not found"
    resp = client.put(url, json={"name": "Stolen"}, headers=auth_headers("intruder"))
    assert resp.status_code == 404


def test_delete_character(client: TestClient) -> None:
    character = _create_character(client)
    resp = client.delete(f"/api/characters/{character['id']}", headers=auth_headers())
    assert resp.json() == {"success": True, "message": "Character deleted successfully"}
    assert client.get(f"/api/characters/{character['id']}", headers=auth_headers()).status_code == 404


def test_live_characters_for_story(client: TestClient) -> None:
    story = create_story(client)
    long_backstory = "x" * 150
    first = _create_character(client, "Aria", backstory=long_backstory)
    second = _create_character(client, "Bram")
    muted = _create_character(client, "Mute", interventionEnabled=False)
    for character in (first, second, muted):
        _link(story["id"], character["id"])

    resp = client.get(f"/api/story/{story['id']}/live-characters", headers=auth_headers())
    assert resp.status_code == 200
    characters = resp.json()["characters"]
    assert [item["name"] for item in characters] == ["Aria", "Bram"]
    assert characters[0]["personality"] == "x" * 100
    assert characters[0]["avatar"] == "🎭"
    assert characters[1]["personality"] == "Story character"
    assert characters[1]["avatar"] == "✨"
    assert all(item["role"] == "character" and item["isActive"] for item in characters)


def test_live_characters_foreign_story(client: TestClient) -> None:
    story = create_story(client, user_id="owner")
    resp = client.get(f"/api/story/{story['id']}/live-characters", headers=auth_headers("intruder"))
    assert resp.status_code == 404
    assert resp.json()["error"] == "Story not found"


LONG_CONTENT = "<p>" + "Mara walked into the ruined library and opened the forbidden book. " * 3 + "</p>"


def test_discover_characters_creates_and_links(client: TestClient, fake_ai) -> None:
    story = create_story(client, content=LONG_CONTENT)
    fake_ai.queue_json(
        {
            "characters": [
                {
                    "name": "Mara",
                    "role": "protagonist",
                    "personality": "A serious and formal archivist",
                    "traits": ["curious", "stubborn"],
                    "emotionalTendencies": ["Curiosity", "fear"],
                    "speakingStyle": "measured",
                    "keyMoments": ["She discovers the forbidden book", "A secret is revealed"],
                }
            ]
        }
    )

    resp = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers(),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "1 characters discovered"
    assert body["characters"][0]["name"] == "Mara"
    assert body["characters"][0]["role"] == "protagonist"

    call = fake_ai.chat_calls[0]
    assert call["json_mode"] is True
    assert call["temperature"] == 0.3
    assert "<p>" not in call["messages"][1]["content"]

    character = client.get(f"/api/characters/{body['characters'][0]['id']}", headers=auth_headers()).json()["character"]
    assert character["backstory"] == "A serious and formal archivist"
    assert character["voiceTone"] == "serious"
    assert character["personality"]["temperament"] == "curious"
    assert character["personality"]["speakingStyle"] == "measured"
    assert character["triggerTopics"] == ["discovery", "secrets"]
    assert character["interventionEnabled"] is True
    assert character["stories"] == [{"id": story["id"], "title": story["title"]}]


def test_discover_characters_updates_existing_by_name(client: TestClient, fake_ai) -> None:
    story = create_story(client, content=LONG_CONTENT)
    existing = _create_character(client, "Mara", interventionEnabled=False)
    fake_ai.queue_json({"characters": [{"name": "Mara", "personality": "warm and kind"}]})

    resp = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers(),
    )
    assert resp.json()["characters"][0]["id"] == existing["id"]

    listing = client.get("/api/characters", headers=auth_headers()).json()
    assert listing["total"] == 1
    updated = listing["characters"][0]
    assert updated["interventionEnabled"] is True
    assert updated["voiceTone"] == "warm"
    assert updated["personality"]["temperament"] == "balanced"


def test_discover_characters_caps_results(client: TestClient, fake_ai) -> None:
    story = create_story(client, content=LONG_CONTENT)
    fake_ai.queue_json({"characters": [{"name": f"Person {index}"} for index in range(8)]})

    resp = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers(),
    )
    assert len(resp.json()["characters"]) == 5


def test_discover_characters_empty_result(client: TestClient, fake_ai) -> None:
    story = create_story(client, content=LONG_CONTENT)
    fake_ai.queue_json({"characters": []})

    resp = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers(),
    )
    assert resp.json() == {"success": True, "characters": [], "message": "No characters found in story"}


def test_discover_characters_validation_and_failures(client: TestClient, fake_ai) -> None:
    story = create_story(client, content=LONG_CONTENT)

    short = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": "too short"},
        headers=auth_headers(),
    )
    assert short.status_code == 400
    assert short.json()["message"] == "Story content too short"

    foreign = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers("intruder"),
    )
    assert foreign.status_code == 404

    fake_ai.chat_responses.append("not json at all")
    broken = client.post(
        "/api/story/discover-characters",
        json={"storyId": story["id"], "content": LONG_CONTENT},
        headers=auth_headers(),
    )
    assert broken.status_code == 500
    assert broken.json()["error"] == "Failed to discover characters"
