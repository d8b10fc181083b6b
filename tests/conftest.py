from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from world_in_ink.config import settings
from world_in_ink.db import session as db_session
from world_in_ink.db.base import Base
from world_in_ink.db.models import Character, Choice, Story, StoryNode, StyleExample, User, WritingStyle  # noqa: F401
from world_in_ink.main import create_app
from world_in_ink.modules.llm.deps import get_ai_client
from tests.support.fake_ai import FakeAIClient


@pytest.fixture(autouse=True)
def _reset_db_and_defaults(tmp_path: Path):
    settings.env = "dev"
    settings.jwt_secret = "test-secret"
    settings.openai_api_key = "test-key"
    settings.assistant_id = "asst_test"
    settings.assistant_poll_interval_s = 0.0
    settings.assistant_max_polls = None
    settings.upload_dir = str(tmp_path / "uploads")
    settings.upload_public_base = "/uploads"
    db_session.rebind_engine(f"sqlite+pysqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=db_session.engine)
    yield
    Base.metadata.drop_all(bind=db_session.engine)
    db_session.engine.dispose()


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def client(fake_ai: FakeAIClient):
    app = create_app()
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    with TestClient(app) as test_client:
        yield test_client
