from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from world_in_ink.schemas import CamelModel, require_text

NodeType = Literal["CONTENT", "DECISION", "ENDING"]


class NodeCreateRequest(CamelModel):
    title: str = Field(default="", validate_default=True)
    content: str
    node_type: NodeType = "CONTENT"
    is_start: bool = False
    is_ending: bool = False
    position: int = 0

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        return require_text(value, "Title is required")


class NodeUpdateRequest(CamelModel):
    title: str | None = None
    content: str | None = None
    node_type: NodeType | None = None
    is_start: bool | None = None
    is_ending: bool | None = None
    position: int | None = None

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return require_text(value, "Title is required")


class ChoiceCreateRequest(CamelModel):
    from_node_id: str = Field(default="", validate_default=True)
    to_node_id: str = Field(default="", validate_default=True)
    text: str = Field(default="", validate_default=True)
    emoji: str | None = None
    position: int = 0

    @field_validator("from_node_id")
    @classmethod
    def _source_required(cls, value: str) -> str:
        return require_text(value, "Source node is required")

    @field_validator("to_node_id")
    @classmethod
    def _target_required(cls, value: str) -> str:
        return require_text(value, "Target node is required")

    @field_validator("text")
    @classmethod
    def _text_required(cls, value: str) -> str:
        return require_text(value, "Choice text is required")


class ChoiceUpdateRequest(CamelModel):
    text: str | None = None
    emoji: str | None = None
    position: int | None = None

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return require_text(value, "Choice text is required")


class NodeRef(CamelModel):
    id: str
    title: str


class TargetNodeRef(NodeRef):
    is_ending: bool


class ChoiceOut(CamelModel):
    id: str
    from_node_id: str
    to_node_id: str
    text: str
    emoji: str | None = None
    position: int
    times_chosen: int
    created_at: datetime


class ChoiceWithEndpoints(ChoiceOut):
    from_node: NodeRef
    to_node: NodeRef


class ChoiceWithTarget(ChoiceOut):
    to_node: TargetNodeRef


class ChoiceWithSource(ChoiceOut):
    from_node: NodeRef


class NodeBase(CamelModel):
    id: str
    story_id: str
    title: str
    content: str
    node_type: NodeType
    is_start: bool
    is_ending: bool
    position: int
    word_count: int
    created_at: datetime
    updated_at: datetime


class NodeOut(NodeBase):
    outgoing_choices: list[ChoiceOut] = Field(default_factory=list)


class NodeDetail(NodeBase):
    outgoing_choices: list[ChoiceWithTarget] = Field(default_factory=list)
    incoming_choices: list[ChoiceWithSource] = Field(default_factory=list)


class StructureNode(NodeBase):
    outgoing_choices: list[ChoiceOut] = Field(default_factory=list)
    incoming_choices: list[ChoiceOut] = Field(default_factory=list)


class NodeResponse(CamelModel):
    success: bool = True
    node: NodeOut


class NodeDetailResponse(CamelModel):
    success: bool = True
    node: NodeDetail


class NodeListResponse(CamelModel):
    success: bool = True
    nodes: list[NodeOut]


class ConvertResponse(CamelModel):
    success: bool = True
    start_node: NodeOut
    message: str = "Story converted to interactive. Add more nodes and choices to create branches."


class ChoiceResponse(CamelModel):
    success: bool = True
    choice: ChoiceWithEndpoints


class SuccessResponse(CamelModel):
    success: bool = True
    message: str | None = None


class StructureAuthor(CamelModel):
    id: str
    name: str | None = None


class StructureStory(CamelModel):
    id: str
    title: str
    is_interactive: bool
    published: bool
    cover_image_url: str | None = None
    author: StructureAuthor


class StructureStats(CamelModel):
    total_nodes: int
    total_endings: int
    total_choices: int
    total_words: int


class StructureResponse(CamelModel):
    success: bool = True
    story: StructureStory
    nodes: list[StructureNode]
    choices: list[ChoiceOut]
    stats: StructureStats
