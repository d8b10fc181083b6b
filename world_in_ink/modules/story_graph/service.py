"""Interactive story graph: nodes, choice edges and their consistency rules.

Two multi-step writes here are intentionally non-atomic and mirror the
storage contract the rest of the system relies on:

- setting a start node first clears any previous start node, then writes the
  new one (two statements, last writer wins);
- creating a choice first checks for an existing (from, to) edge, then
  inserts (no unique constraint backs this check).

Concurrent requests against the same story can therefore still produce two
start nodes or a duplicate edge.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from world_in_ink.db.models import Choice, Story, StoryNode
from world_in_ink.errors import GraphValidationError, NotFoundError
from world_in_ink.modules.stories.service import get_owned_story
from world_in_ink.utils.text import count_words


@dataclass(frozen=True)
class GraphStats:
    total_nodes: int
    total_endings: int
    total_choices: int
    total_words: int


@dataclass(frozen=True)
class StoryStructure:
    story: Story
    nodes: list[StoryNode]
    choices: list[Choice]
    stats: GraphStats


def _count_nodes(db: Session, *, story_id: str) -> int:
    return int(db.execute(select(func.count()).select_from(StoryNode).where(StoryNode.story_id == story_id)).scalar_one())


def _clear_start_nodes(db: Session, *, story_id: str, keep_node_id: str | None = None) -> None:
    stmt = update(StoryNode).where(StoryNode.story_id == story_id, StoryNode.is_start.is_(True))
    if keep_node_id is not None:
        stmt = stmt.where(StoryNode.id != keep_node_id)
    db.execute(stmt.values(is_start=False))


def _node_in_story(db: Session, *, story_id: str, node_id: str) -> StoryNode | None:
    node = db.get(StoryNode, node_id)
    if node is None or node.story_id != story_id:
        return None
    return node


def convert_to_interactive(db: Session, *, story_id: str, user_id: str) -> StoryNode:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    if story.is_interactive and _count_nodes(db, story_id=story.id) > 0:
        raise GraphValidationError("Story is already interactive")

    _clear_start_nodes(db, story_id=story.id)
    node = StoryNode(
        story_id=story.id,
        title=story.title or "Start",
        content=story.content,
        node_type="CONTENT",
        is_start=True,
        is_ending=False,
        position=0,
        word_count=count_words(story.content),
    )
    db.add(node)
    story.is_interactive = True
    db.flush()
    return node


def list_nodes(db: Session, *, story_id: str, user_id: str) -> list[StoryNode]:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    stmt = select(StoryNode).where(StoryNode.story_id == story.id).order_by(StoryNode.position, StoryNode.created_at)
    return list(db.execute(stmt).scalars().all())


def create_node(
    db: Session,
    *,
    story_id: str,
    user_id: str,
    title: str,
    content: str,
    node_type: str = "CONTENT",
    is_start: bool = False,
    is_ending: bool = False,
    position: int = 0,
) -> StoryNode:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)

    if is_start:
        _clear_start_nodes(db, story_id=story.id)

    node = StoryNode(
        story_id=story.id,
        title=title,
        content=content,
        node_type=node_type,
        is_start=is_start,
        is_ending=is_ending or node_type == "ENDING",
        position=position,
        word_count=count_words(content),
    )
    db.add(node)
    if not story.is_interactive:
        story.is_interactive = True
    db.flush()
    return node


def get_node(db: Session, *, story_id: str, node_id: str) -> StoryNode:
    node = _node_in_story(db, story_id=story_id, node_id=node_id)
    if node is None:
        raise NotFoundError("Node not found")
    return node


def get_owned_node(db: Session, *, story_id: str, node_id: str, user_id: str) -> StoryNode:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)
    node = _node_in_story(db, story_id=story.id, node_id=node_id)
    if node is None:
        raise NotFoundError("Node not found")
    return node


def update_node(db: Session, *, story_id: str, node_id: str, user_id: str, changes: dict) -> StoryNode:
    node = get_owned_node(db, story_id=story_id, node_id=node_id, user_id=user_id)

    if "content" in changes and changes["content"] is not None:
        node.content = changes["content"]
        node.word_count = count_words(node.content)

    if changes.get("is_start") is True:
        _clear_start_nodes(db, story_id=node.story_id, keep_node_id=node.id)

    for field in ("title", "node_type", "is_start", "position"):
        if changes.get(field) is not None:
            setattr(node, field, changes[field])

    if changes.get("is_ending") is not None:
        node.is_ending = changes["is_ending"]
    elif changes.get("node_type") == "ENDING":
        node.is_ending = True

    db.flush()
    return node


def delete_node(db: Session, *, story_id: str, node_id: str, user_id: str) -> None:
    node = get_owned_node(db, story_id=story_id, node_id=node_id, user_id=user_id)
    story = node.story
    db.delete(node)
    db.flush()
    if _count_nodes(db, story_id=story.id) == 0:
        story.is_interactive = False
        db.flush()


def create_choice(
    db: Session,
    *,
    story_id: str,
    user_id: str,
    from_node_id: str,
    to_node_id: str,
    text: str,
    emoji: str | None = None,
    position: int = 0,
) -> Choice:
    story = get_owned_story(db, story_id=story_id, user_id=user_id)

    source = _node_in_story(db, story_id=story.id, node_id=from_node_id)
    if source is None:
        raise GraphValidationError("Source node not found")
    target = _node_in_story(db, story_id=story.id, node_id=to_node_id)
    if target is None:
        raise GraphValidationError("Target node not found")

    existing = db.execute(
        select(Choice.id).where(Choice.from_node_id == source.id, Choice.to_node_id == target.id)
    ).first()
    if existing is not None:
        raise GraphValidationError("This connection already exists")

    choice = Choice(from_node=source, to_node=target, text=text, emoji=emoji, position=position)
    db.add(choice)
    db.flush()
    return choice


def get_owned_choice(db: Session, *, story_id: str, choice_id: str, user_id: str) -> Choice:
    """Transitive ownership: the story must be the caller's and the choice must leave one of its nodes."""
    try:
        story = get_owned_story(db, story_id=story_id, user_id=user_id)
    except NotFoundError as exc:
        raise NotFoundError("Choice not found") from exc

    choice = db.get(Choice, choice_id)
    if choice is None or choice.from_node.story_id != story.id:
        raise NotFoundError("Choice not found")
    return choice


def update_choice(db: Session, *, story_id: str, choice_id: str, user_id: str, changes: dict) -> Choice:
    choice = get_owned_choice(db, story_id=story_id, choice_id=choice_id, user_id=user_id)
    if changes.get("text") is not None:
        choice.text = changes["text"]
    if "emoji" in changes:
        choice.emoji = changes["emoji"]
    if changes.get("position") is not None:
        choice.position = changes["position"]
    db.flush()
    return choice


def delete_choice(db: Session, *, story_id: str, choice_id: str, user_id: str) -> None:
    choice = get_owned_choice(db, story_id=story_id, choice_id=choice_id, user_id=user_id)
    db.delete(choice)
    db.flush()


def record_choice_taken(db: Session, *, choice_id: str) -> None:
    result = db.execute(
        update(Choice).where(Choice.id == choice_id).values(times_chosen=Choice.times_chosen + 1)
    )
    if result.rowcount != 1:
        raise NotFoundError("Choice not found")


def get_structure(db: Session, *, story_id: str, viewer_id: str | None) -> StoryStructure:
    story = db.get(Story, story_id)
    if story is None:
        raise NotFoundError("Story not found")
    if not story.published and viewer_id != story.author_id:
        raise PermissionError("Story not accessible")

    nodes = list(
        db.execute(
            select(StoryNode).where(StoryNode.story_id == story.id).order_by(StoryNode.position, StoryNode.created_at)
        )
        .scalars()
        .all()
    )
    choices = [choice for node in nodes for choice in node.outgoing_choices]
    stats = GraphStats(
        total_nodes=len(nodes),
        total_endings=sum(1 for node in nodes if node.is_ending),
        total_choices=len(choices),
        total_words=sum(node.word_count for node in nodes),
    )
    return StoryStructure(story=story, nodes=nodes, choices=choices, stats=stats)
