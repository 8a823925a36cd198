"""
Scale generator.

Builds ``FretboardDiagramData`` for a scale by walking every position in a
fret window and keeping the notes that belong to the scale formula.
"""
from __future__ import annotations

import uuid
from types import MappingProxyType
from typing import Literal, Mapping

from fretcraft.models.diagrams import (
    FretboardDiagramData,
    FretboardMetadata,
    FretboardNote,
    FretboardRange,
)
from fretcraft.models.primitives import GuitarPosition, Interval, NoteName
from fretcraft.music.note_utils import interval_in_scale, note_at

ScaleType = Literal["major", "minor_pentatonic", "major_pentatonic", "blues"]

SCALE_FORMULAS: Mapping[str, tuple[Interval, ...]] = MappingProxyType({
    "major": ("R", "2", "3", "4", "5", "6", "7"),
    "minor_pentatonic": ("R", "b3", "4", "5", "b7"),
    "major_pentatonic": ("R", "2", "3", "5", "6"),
    "blues": ("R", "b3", "4", "#4", "5", "b7"),
})

SCALE_LABELS: Mapping[str, str] = MappingProxyType({
    "major": "Major Scale",
    "minor_pentatonic": "Minor Pentatonic",
    "major_pentatonic": "Major Pentatonic",
    "blues": "Blues Scale",
})


def generate_scale(
    root: NoteName,
    scale: ScaleType,
    from_fret: int,
    to_fret: int,
) -> FretboardDiagramData:
    """Fretboard diagram for ``scale`` over ``from_fret..to_fret`` inclusive.

    Notes are ordered string 1 to 6, low fret to high fret within a string.

    >>> data = generate_scale("A", "minor_pentatonic", 5, 8)
    >>> data.label
    'A Minor Pentatonic'
    """
    formula = SCALE_FORMULAS[scale]
    window = FretboardRange(from_fret=from_fret, to_fret=to_fret)

    notes: list[FretboardNote] = []
    for string in range(1, 7):
        for fret in range(window.from_fret, window.to_fret + 1):
            note = note_at(string, fret)
            interval = interval_in_scale(note, root, formula)
            if interval is None:
                continue
            notes.append(FretboardNote(
                position=GuitarPosition(string=string, fret=fret),
                interval=interval,
                note=note,
                is_root=interval == "R",
            ))

    return FretboardDiagramData(
        id=str(uuid.uuid4()),
        root=root,
        label=f"{root} {SCALE_LABELS[scale]}",
        range=window,
        notes=notes,
        metadata=FretboardMetadata(scale_formula=list(formula)),
    )
