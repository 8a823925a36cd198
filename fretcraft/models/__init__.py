"""Pydantic models for the Fretcraft domain and API."""
from __future__ import annotations

from fretcraft.models.base import CamelModel
from fretcraft.models.blocks import (
    LESSON_BLOCK_ADAPTER,
    ChordDiagramBlock,
    FretboardDiagramBlock,
    LessonBlock,
    TextBlock,
    VideoEmbedBlock,
    VideoSource,
)
from fretcraft.models.diagrams import (
    ChordDiagramData,
    ChordDiagramPosition,
    ChordVoicing,
    FretboardDiagramData,
    FretboardNote,
    FretboardRange,
)
from fretcraft.models.lesson_state import (
    LayoutState,
    LessonUIState,
    create_empty_lesson_ui_state,
)
from fretcraft.models.planner_actions import (
    BlockUpdateData,
    PlannerAction,
    PlannerActionResult,
)
from fretcraft.models.primitives import GuitarPosition, Interval, NoteName

__all__ = [
    "CamelModel",
    "LESSON_BLOCK_ADAPTER",
    "ChordDiagramBlock",
    "FretboardDiagramBlock",
    "LessonBlock",
    "TextBlock",
    "VideoEmbedBlock",
    "VideoSource",
    "ChordDiagramData",
    "ChordDiagramPosition",
    "ChordVoicing",
    "FretboardDiagramData",
    "FretboardNote",
    "FretboardRange",
    "LayoutState",
    "LessonUIState",
    "create_empty_lesson_ui_state",
    "BlockUpdateData",
    "PlannerAction",
    "PlannerActionResult",
    "GuitarPosition",
    "Interval",
    "NoteName",
]
