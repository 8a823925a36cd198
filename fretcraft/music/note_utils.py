"""
Note, interval and fretboard position utilities.

Pure functions over the closed NoteName / Interval sets, shared by the chord
reference store and the diagram generators.  All are total over their
domains; out-of-domain input is a programming error, not a runtime state.
"""
from __future__ import annotations

from collections.abc import Iterable

from fretcraft.models.primitives import (
    CHROMATIC_NOTES,
    INTERVAL_BY_SEMITONE,
    INTERVAL_SEMITONES,
    NOTE_TO_SEMITONE,
    STANDARD_TUNING,
    Interval,
    NoteName,
)


def note_index(note: NoteName) -> int:
    """Pitch class (0-11) of a note.  C# and Db both return 1."""
    return NOTE_TO_SEMITONE[note]


def note_at(string: int, fret: int) -> NoteName:
    """Note sounding at ``fret`` on ``string`` in standard tuning.

    >>> note_at(6, 5)
    'A'
    >>> note_at(1, 3)
    'G'
    """
    open_note = STANDARD_TUNING[string - 1]
    return CHROMATIC_NOTES[(note_index(open_note) + fret) % 12]


def find_note_on_string(string: int, note: NoteName) -> int:
    """Lowest fret (0-11) where ``note`` sounds on ``string``."""
    open_note = STANDARD_TUNING[string - 1]
    return (note_index(note) - note_index(open_note) + 12) % 12


def semitone_distance(root: NoteName, note: NoteName) -> int:
    """Semitones (0-11) from ``root`` up to ``note``."""
    return (note_index(note) - note_index(root) + 12) % 12


def interval_for_semitones(semitones: int) -> Interval:
    """Interval label for a semitone distance from the root."""
    return INTERVAL_BY_SEMITONE[semitones % 12]  # type: ignore[return-value]


def interval_in_scale(
    note: NoteName,
    root: NoteName,
    formula: Iterable[Interval],
) -> Interval | None:
    """The formula interval matching ``note`` above ``root``, or None.

    >>> interval_in_scale("E", "C", ["R", "2", "3", "4", "5", "6", "7"])
    '3'
    """
    semitones = semitone_distance(root, note)
    for interval in formula:
        if INTERVAL_SEMITONES[interval] == semitones:
            return interval
    return None


def transpose(note: NoteName, semitones: int) -> NoteName:
    """Shift ``note`` by ``semitones`` (negative = down), sharp spelling."""
    return CHROMATIC_NOTES[(note_index(note) + semitones) % 12]
