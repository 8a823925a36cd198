"""
Shell voicing generator.

A shell voicing keeps only the root, the third and the seventh.  Shapes are
stored as fret offsets from the root fret on the root string; intervals are
derived from the resulting notes, never stored.
"""
from __future__ import annotations

import uuid
from types import MappingProxyType
from typing import Literal, Mapping, NamedTuple

from fretcraft.models.diagrams import (
    ChordDiagramData,
    ChordDiagramMetadata,
    ChordDiagramPosition,
)
from fretcraft.models.primitives import GuitarPosition, NoteName
from fretcraft.music.note_utils import (
    find_note_on_string,
    interval_for_semitones,
    note_at,
    semitone_distance,
)

ShellQuality = Literal["m7", "7", "maj7"]
StringSet = Literal["low", "middle", "high"]


class ShellShape(NamedTuple):
    root_string: int
    # (string, fret offset from the root fret)
    offsets: tuple[tuple[int, int], ...]


# low = root on string 6, middle = root on string 5, high = root on string 4.
SHELL_SHAPES: Mapping[str, Mapping[str, ShellShape]] = MappingProxyType({
    "m7": MappingProxyType({
        "low": ShellShape(6, ((6, 0), (4, 0), (3, 0))),
        "middle": ShellShape(5, ((5, 0), (3, 0), (2, 1))),
        "high": ShellShape(4, ((4, 0), (2, 1), (1, 1))),
    }),
    "7": MappingProxyType({
        "low": ShellShape(6, ((6, 0), (4, 0), (3, 1))),
        "middle": ShellShape(5, ((5, 0), (3, 0), (2, 2))),
        "high": ShellShape(4, ((4, 0), (2, 1), (1, 2))),
    }),
    "maj7": MappingProxyType({
        "low": ShellShape(6, ((6, 0), (4, 1), (3, 1))),
        "middle": ShellShape(5, ((5, 0), (3, 1), (2, 2))),
        "high": ShellShape(4, ((4, 0), (2, 2), (1, 2))),
    }),
})


def generate_shell_voicing(
    root: NoteName,
    quality: ShellQuality,
    string_set: StringSet,
) -> ChordDiagramData:
    """Shell voicing for ``root``/``quality`` on the given string set.

    The root sits at the lowest fret it occupies on the root string (0-11).
    Strings outside the shape are muted.
    """
    shape = SHELL_SHAPES[quality][string_set]
    root_fret = find_note_on_string(shape.root_string, root)

    positions: list[ChordDiagramPosition] = []
    for string, offset in shape.offsets:
        fret = root_fret + offset
        note = note_at(string, fret)
        positions.append(ChordDiagramPosition(
            position=GuitarPosition(string=string, fret=fret),
            interval=interval_for_semitones(semitone_distance(root, note)),
            note=note,
        ))

    used = {p.position.string for p in positions}
    fretted = [p.position.fret for p in positions if p.position.fret > 0]

    return ChordDiagramData(
        id=str(uuid.uuid4()),
        root=root,
        quality=quality,
        positions=positions,
        base_fret=min(fretted) if fretted else None,
        muted_strings=[s for s in range(1, 7) if s not in used],
        metadata=ChordDiagramMetadata(name=f"{root}{quality} Shell ({string_set} strings)"),
    )
