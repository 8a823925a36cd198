"""Music primitives: note names, intervals, and guitar positions.

The interval table is the single source of truth for interval <-> semitone
conversion.  Every interval label produced by the chord reference store and
the generators comes from ``INTERVAL_BY_SEMITONE``.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Literal, get_args

from pydantic import Field

from fretcraft.models.base import CamelModel

NoteName = Literal[
    "C", "C#", "Db",
    "D", "D#", "Eb",
    "E",
    "F", "F#", "Gb",
    "G", "G#", "Ab",
    "A", "A#", "Bb",
    "B",
]

Interval = Literal[
    "R",
    "b2", "2",
    "b3", "3",
    "4", "#4",
    "5", "b6",
    "6",
    "b7", "7",
]

NOTE_NAMES: tuple[str, ...] = get_args(NoteName)
INTERVALS: tuple[str, ...] = get_args(Interval)

# Strict ints: tool payloads come from the model and must not be coerced
# from strings, floats or booleans.
StringNumber = Annotated[int, Field(strict=True, ge=1, le=6)]
FretNumber = Annotated[int, Field(strict=True, ge=0, le=24)]

# Strings 1..6 (high E to low E).
STANDARD_TUNING: tuple[NoteName, ...] = ("E", "B", "G", "D", "A", "E")

# Canonical (sharp) spelling for each pitch class.
CHROMATIC_NOTES: tuple[NoteName, ...] = (
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
)

NOTE_TO_SEMITONE: MappingProxyType[str, int] = MappingProxyType({
    "C": 0, "C#": 1, "Db": 1,
    "D": 2, "D#": 3, "Eb": 3,
    "E": 4,
    "F": 5, "F#": 6, "Gb": 6,
    "G": 7, "G#": 8, "Ab": 8,
    "A": 9, "A#": 10, "Bb": 10,
    "B": 11,
})

INTERVAL_SEMITONES: MappingProxyType[str, int] = MappingProxyType({
    "R": 0,
    "b2": 1, "2": 2,
    "b3": 3, "3": 4,
    "4": 5, "#4": 6,
    "5": 7, "b6": 8,
    "6": 9,
    "b7": 10, "7": 11,
})

INTERVAL_BY_SEMITONE: MappingProxyType[int, str] = MappingProxyType(
    {semitones: interval for interval, semitones in INTERVAL_SEMITONES.items()}
)


class GuitarPosition(CamelModel):
    """A single location on the neck.

    String 1 = high E, string 6 = low E (standard tuning).  Fret 0 = open.
    """

    string: StringNumber
    fret: FretNumber
