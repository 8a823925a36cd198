"""Chat stream event models: single source of truth for the SSE wire format.

Every event the chat endpoint emits is an instance of a ``LessonEvent``
subclass.  The emitter serializes through these models.

Wire format rules:
  - All keys are camelCase (via CamelModel alias_generator)
  - Every event has a ``type`` discriminator
  - JSON serialization uses model_dump(mode="json", by_alias=True, exclude_none=True)

Events use extra="forbid": the outbound contract is strict.
"""
from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict

from fretcraft.core.tool_handlers import ToolCallResult
from fretcraft.models.base import CamelModel


class LessonEvent(CamelModel):
    """Base class for all chat stream events."""

    model_config = ConfigDict(extra="forbid")

    type: str


class TextEvent(LessonEvent):
    """A fragment of assistant text."""

    type: Literal["text"] = "text"
    content: str


class ToolStartEvent(LessonEvent):
    """The model opened a tool call; its input is still streaming."""

    type: Literal["tool_start"] = "tool_start"
    name: str


class ToolResultEvent(LessonEvent):
    """A tool call finished (successfully or not)."""

    type: Literal["tool_result"] = "tool_result"
    result: ToolCallResult


class DoneEvent(LessonEvent):
    """The model stopped calling tools.  Carries all text across turns."""

    type: Literal["done"] = "done"
    full_response: str


class ErrorEvent(LessonEvent):
    """Terminal failure of the turn."""

    type: Literal["error"] = "error"
    error: str


EVENT_REGISTRY: dict[str, type[LessonEvent]] = {
    "text": TextEvent,
    "tool_start": ToolStartEvent,
    "tool_result": ToolResultEvent,
    "done": DoneEvent,
    "error": ErrorEvent,
}
