from world_in_ink.db import session as db_session
from world_in_ink.db.base import Base
from world_in_ink.db.models import Character, Choice, StoryNode, Story, StyleExample, User, WritingStyle  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=db_session.engine)
