"""Request/response bodies for the HTTP API."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import Field

from fretcraft.models.base import CamelModel
from fretcraft.models.lesson_state import LessonUIState
from fretcraft.models.planner_actions import PlannerActionResult


class ChatRequest(CamelModel):
    """Body of ``POST /chat``."""

    lesson_id: str = Field(min_length=1)
    message: str = Field(min_length=1, max_length=20_000)


class LessonCreateRequest(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)


class LessonUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)
    ui_schema: Optional[LessonUIState] = None


class NewBlockRequest(CamelModel):
    """A user-authored block.

    ``block`` holds the variant payload including ``type``; ``id``,
    ``createdBy`` and ``createdAt`` are stamped server-side.
    """

    block: dict[str, object]
    insert_at: Optional[Annotated[int, Field(ge=0)]] = None


class RemoveBlockRequest(CamelModel):
    reason: str = Field(default="", max_length=500)


class ReorderRequest(CamelModel):
    order: list[str]


class ToolCallRecord(CamelModel):
    """Summary of one tool outcome kept in the chat transcript."""

    success: bool
    block_id: Optional[str] = None
    error: Optional[str] = None


class TranscriptMessage(CamelModel):
    """One stored chat message."""

    id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime
    tool_calls: Optional[list[ToolCallRecord]] = None


class LessonSummary(CamelModel):
    id: str
    title: str
    created_at: datetime
    updated_at: datetime


class LessonDetail(LessonSummary):
    ui_schema: LessonUIState
    messages: list[TranscriptMessage] = Field(default_factory=list)


class BlockMutationResponse(CamelModel):
    """Result of a planner operation plus the document it produced."""

    result: PlannerActionResult
    ui_schema: LessonUIState
