"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from world_in_ink.db.types import EntityId, JSONType


revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "stories",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cover_image_url", sa.String(length=1024), nullable=True),
        sa.Column("is_interactive", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("author_id", EntityId(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stories_author_id", "stories", ["author_id"], unique=False)
    op.create_index("ix_stories_published", "stories", ["published"], unique=False)
    op.create_index("ix_stories_created_at", "stories", ["created_at"], unique=False)
    op.create_index("ix_stories_updated_at", "stories", ["updated_at"], unique=False)

    op.create_table(
        "story_nodes",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("story_id", EntityId(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("node_type", sa.String(length=16), nullable=False, server_default="CONTENT"),
        sa.Column("is_start", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_ending", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["story_id"], ["stories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_story_nodes_story_id", "story_nodes", ["story_id"], unique=False)
    op.create_index("ix_story_nodes_created_at", "story_nodes", ["created_at"], unique=False)

    op.create_table(
        "choices",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("from_node_id", EntityId(), nullable=False),
        sa.Column("to_node_id", EntityId(), nullable=False),
        sa.Column("text", sa.String(length=500), nullable=False),
        sa.Column("emoji", sa.String(length=32), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("times_chosen", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["from_node_id"], ["story_nodes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_node_id"], ["story_nodes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_choices_from_node_id", "choices", ["from_node_id"], unique=False)
    op.create_index("ix_choices_to_node_id", "choices", ["to_node_id"], unique=False)
    op.create_index("ix_choices_created_at", "choices", ["created_at"], unique=False)

    op.create_table(
        "characters",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("author_id", EntityId(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("backstory", sa.Text(), nullable=False),
        sa.Column("traits", JSONType, nullable=False),
        sa.Column("personality", JSONType, nullable=True),
        sa.Column("voice_tone", sa.String(length=32), nullable=False, server_default="neutral"),
        sa.Column("emotional_range", JSONType, nullable=False),
        sa.Column("trigger_topics", JSONType, nullable=False),
        sa.Column("trigger_words", JSONType, nullable=False),
        sa.Column("intervention_enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("intervention_style", sa.String(length=32), nullable=False, server_default="suggestion"),
        sa.Column("intervention_frequency", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("total_interventions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_intervention", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_characters_author_id", "characters", ["author_id"], unique=False)
    op.create_index("ix_characters_name", "characters", ["name"], unique=False)
    op.create_index("ix_characters_created_at", "characters", ["created_at"], unique=False)
    op.create_index("ix_characters_updated_at", "characters", ["updated_at"], unique=False)

    op.create_table(
        "story_characters",
        sa.Column("story_id", EntityId(), nullable=False),
        sa.Column("character_id", EntityId(), nullable=False),
        sa.ForeignKeyConstraint(["story_id"], ["stories.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["character_id"], ["characters.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("story_id", "character_id"),
    )

    op.create_table(
        "writing_styles",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("user_id", EntityId(), nullable=False),
        sa.Column("narrative_voice", sa.String(length=32), nullable=False),
        sa.Column("preferred_tense", sa.String(length=16), nullable=False),
        sa.Column("avg_sentence_length", sa.Float(), nullable=False),
        sa.Column("avg_paragraph_length", sa.Float(), nullable=False),
        sa.Column("vocabulary_level", sa.String(length=16), nullable=False),
        sa.Column("dominant_tones", JSONType, nullable=False),
        sa.Column("writing_pace", sa.String(length=16), nullable=False),
        sa.Column("descriptive_density", sa.String(length=16), nullable=False),
        sa.Column("signature_phrases", JSONType, nullable=False),
        sa.Column("favorite_words", JSONType, nullable=False),
        sa.Column("avoided_words", JSONType, nullable=False),
        sa.Column("dialogue_style", sa.String(length=32), nullable=False),
        sa.Column("dialogue_frequency", sa.Float(), nullable=False),
        sa.Column("similar_authors", JSONType, nullable=False),
        sa.Column("literary_movement", sa.String(length=255), nullable=True),
        sa.Column("analyzed_stories", sa.Integer(), nullable=False),
        sa.Column("total_words_analyzed", sa.Integer(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("last_analyzed", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_writing_styles_user_id", "writing_styles", ["user_id"], unique=True)
    op.create_index("ix_writing_styles_created_at", "writing_styles", ["created_at"], unique=False)

    op.create_table(
        "style_examples",
        sa.Column("id", EntityId(), nullable=False),
        sa.Column("style_id", EntityId(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("example_type", sa.String(length=16), nullable=False),
        sa.Column("story_title", sa.String(length=255), nullable=False),
        sa.Column("context", sa.Text(), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False),
        sa.Column("relevance_score", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["style_id"], ["writing_styles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_style_examples_style_id", "style_examples", ["style_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_style_examples_style_id", table_name="style_examples")
    op.drop_table("style_examples")
    op.drop_index("ix_writing_styles_created_at", table_name="writing_styles")
    op.drop_index("ix_writing_styles_user_id", table_name="writing_styles")
    op.drop_table("writing_styles")
    op.drop_table("story_characters")
    op.drop_index("ix_characters_updated_at", table_name="characters")
    op.drop_index("ix_characters_created_at", table_name="characters")
    op.drop_index("ix_characters_name", table_name="characters")
    op.drop_index("ix_characters_author_id", table_name="characters")
    op.drop_table("characters")
    op.drop_index("ix_choices_created_at", table_name="choices")
    op.drop_index("ix_choices_to_node_id", table_name="choices")
    op.drop_index("ix_choices_from_node_id", table_name="choices")
    op.drop_table("choices")
    op.drop_index("ix_story_nodes_created_at", table_name="story_nodes")
    op.drop_index("ix_story_nodes_story_id", table_name="story_nodes")
    op.drop_table("story_nodes")
    op.drop_index("ix_stories_updated_at", table_name="stories")
    op.drop_index("ix_stories_created_at", table_name="stories")
    op.drop_index("ix_stories_published", table_name="stories")
    op.drop_index("ix_stories_author_id", table_name="stories")
    op.drop_table("stories")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
