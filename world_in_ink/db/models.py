from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from world_in_ink.db.base import Base
from world_in_ink.db.types import EntityId, JSONType, new_id
from world_in_ink.utils.time import utc_now_naive


def utcnow() -> datetime:
    return utc_now_naive()


story_characters = Table(
    "story_characters",
    Base.metadata,
    Column("story_id", EntityId(), ForeignKey("stories.id", ondelete="CASCADE"), primary_key=True),
    Column("character_id", EntityId(), ForeignKey("characters.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class Story(Base):
    __tablename__ = "stories"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text, default="")
    word_count: Mapped[int] = mapped_column(Integer, default=0)
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    views: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    cover_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_interactive: Mapped[bool] = mapped_column(Boolean, default=False)
    author_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, index=True)

    author: Mapped[User] = relationship()
    nodes: Mapped[list["StoryNode"]] = relationship(
        back_populates="story",
        cascade="all, delete-orphan",
        order_by="StoryNode.position",
    )
    characters: Mapped[list["Character"]] = relationship(secondary=story_characters, back_populates="stories")


class StoryNode(Base):
    __tablename__ = "story_nodes"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    story_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("stories.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text, default="")
    node_type: Mapped[str] = mapped_column(String(16), default="CONTENT")
    is_start: Mapped[bool] = mapped_column(Boolean, default=False)
    is_ending: Mapped[bool] = mapped_column(Boolean, default=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    word_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    story: Mapped[Story] = relationship(back_populates="nodes")
    outgoing_choices: Mapped[list["Choice"]] = relationship(
        back_populates="from_node",
        foreign_keys="Choice.from_node_id",
        cascade="all, delete",
        order_by="Choice.position",
    )
    incoming_choices: Mapped[list["Choice"]] = relationship(
        back_populates="to_node",
        foreign_keys="Choice.to_node_id",
        cascade="all, delete",
        order_by="Choice.position",
    )


class Choice(Base):
    __tablename__ = "choices"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    from_node_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("story_nodes.id", ondelete="CASCADE"), index=True)
    to_node_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("story_nodes.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(String(500))
    emoji: Mapped[str | None] = mapped_column(String(32), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    times_chosen: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    from_node: Mapped[StoryNode] = relationship(back_populates="outgoing_choices", foreign_keys=[from_node_id])
    to_node: Mapped[StoryNode] = relationship(back_populates="incoming_choices", foreign_keys=[to_node_id])


class Character(Base):
    __tablename__ = "characters"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    author_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    backstory: Mapped[str] = mapped_column(Text, default="")
    traits: Mapped[list] = mapped_column(JSONType, default=list)
    personality: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    voice_tone: Mapped[str] = mapped_column(String(32), default="neutral")
    emotional_range: Mapped[list] = mapped_column(JSONType, default=list)
    trigger_topics: Mapped[list] = mapped_column(JSONType, default=list)
    trigger_words: Mapped[list] = mapped_column(JSONType, default=list)
    intervention_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    intervention_style: Mapped[str] = mapped_column(String(32), default="suggestion")
    intervention_frequency: Mapped[str] = mapped_column(String(16), default="medium")
    total_interventions: Mapped[int] = mapped_column(Integer, default=0)
    last_intervention: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, index=True)

    stories: Mapped[list[Story]] = relationship(secondary=story_characters, back_populates="characters")


class WritingStyle(Base):
    __tablename__ = "writing_styles"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    narrative_voice: Mapped[str] = mapped_column(String(32))
    preferred_tense: Mapped[str] = mapped_column(String(16))
    avg_sentence_length: Mapped[float] = mapped_column(Float, default=0.0)
    avg_paragraph_length: Mapped[float] = mapped_column(Float, default=0.0)
    vocabulary_level: Mapped[str] = mapped_column(String(16))
    dominant_tones: Mapped[list] = mapped_column(JSONType, default=list)
    writing_pace: Mapped[str] = mapped_column(String(16), default="moderate")
    descriptive_density: Mapped[str] = mapped_column(String(16), default="moderate")
    signature_phrases: Mapped[dict] = mapped_column(JSONType, default=dict)
    favorite_words: Mapped[dict] = mapped_column(JSONType, default=dict)
    avoided_words: Mapped[list] = mapped_column(JSONType, default=list)
    dialogue_style: Mapped[str] = mapped_column(String(32), default="natural")
    dialogue_frequency: Mapped[float] = mapped_column(Float, default=0.0)
    similar_authors: Mapped[list] = mapped_column(JSONType, default=list)
    literary_movement: Mapped[str | None] = mapped_column(String(255), nullable=True)
    analyzed_stories: Mapped[int] = mapped_column(Integer, default=0)
    total_words_analyzed: Mapped[int] = mapped_column(Integer, default=0)
    confidence: Mapped[float] = mapped_column(Float, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_analyzed: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    examples: Mapped[list["StyleExample"]] = relationship(
        back_populates="style",
        cascade="all, delete-orphan",
        order_by="StyleExample.relevance_score.desc()",
    )


class StyleExample(Base):
    __tablename__ = "style_examples"

    id: Mapped[str] = mapped_column(EntityId(), primary_key=True, default=new_id)
    style_id: Mapped[str] = mapped_column(EntityId(), ForeignKey("writing_styles.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text)
    example_type: Mapped[str] = mapped_column(String(16))
    story_title: Mapped[str] = mapped_column(String(255), default="")
    context: Mapped[str] = mapped_column(Text, default="")
    word_count: Mapped[int] = mapped_column(Integer, default=0)
    relevance_score: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    style: Mapped[WritingStyle] = relationship(back_populates="examples")
