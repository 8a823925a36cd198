"""Music theory helpers over the 12-pitch-class chromatic system."""
from __future__ import annotations

from fretcraft.music.note_utils import (
    find_note_on_string,
    interval_for_semitones,
    interval_in_scale,
    note_at,
    note_index,
    semitone_distance,
    transpose,
)

__all__ = [
    "find_note_on_string",
    "interval_for_semitones",
    "interval_in_scale",
    "note_at",
    "note_index",
    "semitone_distance",
    "transpose",
]
