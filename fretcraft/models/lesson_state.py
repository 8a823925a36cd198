"""Lesson document state: block registry plus layout.

This is persisted as JSON and restored verbatim.  The planner is the only
writer during an editing session.
"""
from __future__ import annotations

from pydantic import Field

from fretcraft.models.base import CamelModel
from fretcraft.models.blocks import LessonBlock


class LayoutState(CamelModel):
    """Visual ordering and pinned blocks."""

    order: list[str] = Field(default_factory=list)
    pinned: list[str] = Field(default_factory=list)


class LessonUIState(CamelModel):
    """The complete UI state for a lesson."""

    lesson_id: str
    layout: LayoutState = Field(default_factory=LayoutState)
    blocks: dict[str, LessonBlock] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, object]:
        """camelCase JSON-safe dict, as stored and as sent to clients."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_empty_lesson_ui_state(lesson_id: str) -> LessonUIState:
    """Create an empty lesson document."""
    return LessonUIState(lesson_id=lesson_id)
