"""Diagram payloads: chord voicings and fretboard note collections.

These are the shapes the model must produce through ``create_chord_diagram``
and ``create_fretboard_diagram``.  Enums are closed, arrays are bounded and
numeric fields are range-checked; anything else is rejected before a block is
built.
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import Field, model_validator

from fretcraft.models.base import CamelModel
from fretcraft.models.primitives import (
    FretNumber,
    GuitarPosition,
    Interval,
    NoteName,
    StringNumber,
)

Tuning = Annotated[list[str], Field(min_length=6, max_length=6)]


class ChordDiagramPosition(CamelModel):
    """A single sounding note in a chord diagram."""

    position: GuitarPosition
    interval: Interval
    note: NoteName


class ChordDiagramMetadata(CamelModel):
    name: Optional[str] = None
    tuning: Optional[Tuning] = None


class ChordDiagramData(CamelModel):
    """A single concrete chord shape (one voicing).

    Used for shell voicings, drop voicings, triads and partial grips.
    """

    id: str = Field(min_length=1)
    root: NoteName
    quality: str = Field(min_length=1)
    positions: list[ChordDiagramPosition] = Field(min_length=1, max_length=10)
    base_fret: Optional[Annotated[int, Field(strict=True, ge=1, le=24)]] = None
    muted_strings: Optional[list[StringNumber]] = None
    metadata: Optional[ChordDiagramMetadata] = None


class FretboardNote(CamelModel):
    """A single note in a fretboard diagram."""

    position: GuitarPosition
    interval: Interval
    note: NoteName
    is_root: Optional[bool] = Field(default=None, strict=True)


class FretboardRange(CamelModel):
    """The visible fret window."""

    from_fret: FretNumber
    to_fret: FretNumber

    @model_validator(mode="after")
    def _check_order(self) -> "FretboardRange":
        if self.to_fret < self.from_fret:
            raise ValueError("toFret must be >= fromFret")
        return self


class FretboardMetadata(CamelModel):
    tuning: Optional[Tuning] = None
    scale_formula: Optional[list[Interval]] = None


class FretboardDiagramData(CamelModel):
    """A conceptual fretboard view: scales, arpeggios, chord tones."""

    id: str = Field(min_length=1)
    root: NoteName
    label: Optional[str] = None
    range: FretboardRange
    notes: list[FretboardNote] = Field(min_length=1)
    metadata: Optional[FretboardMetadata] = None


class ChordVoicing(CamelModel):
    """A reference voicing converted to diagram-ready positions.

    The ``positions`` / ``base_fret`` / ``muted_strings`` fields can be passed
    straight into ``create_chord_diagram``.
    """

    root: str
    quality: str
    name: str
    positions: list[ChordDiagramPosition]
    base_fret: int
    muted_strings: list[int]
