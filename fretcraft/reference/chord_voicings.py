"""
Chord voicing reference data.

Fret patterns follow the tombatossals/chords-db project.  The table is
read-only process-wide data: built once at import, wrapped in
``MappingProxyType`` and shared by every lookup without locking.

A fret pattern is six characters for strings 6..1 (low E first):
``x`` = muted, ``0``-``9`` = fret, ``a``.. = fret 10 and up.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from fretcraft.models.diagrams import ChordDiagramPosition, ChordVoicing
from fretcraft.models.primitives import GuitarPosition
from fretcraft.music.note_utils import interval_for_semitones, note_at, semitone_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawVoicing:
    """One verified fingering as stored in the reference table."""

    frets: str
    name: str
    barre: Optional[int] = None


def _v(frets: str, name: str, barre: Optional[int] = None) -> RawVoicing:
    return RawVoicing(frets=frets, name=name, barre=barre)


_TABLE: dict[str, dict[str, tuple[RawVoicing, ...]]] = {
    "C": {
        "maj": (
            _v("x32010", "Open C"),
            _v("x35553", "A Shape", 3),
            _v("xx5558", "Partial", 5),
            _v("8aa988", "E Shape", 8),
        ),
        "m": (
            _v("x31013", "Open Cm"),
            _v("335543", "Am Shape", 3),
            _v("8655xx", "Partial"),
            _v("8aa888", "Em Shape", 8),
        ),
        "7": (
            _v("x32310", "Open C7"),
            _v("x35353", "A7 Shape", 3),
            _v("xx5556", "Partial", 5),
            _v("8a8988", "E7 Shape", 8),
        ),
        "m7": (
            _v("8x888x", "Em7 Shape", 8),
            _v("x3134x", "Am7 Shape"),
            _v("335343", "Barre", 3),
            _v("xx5546", "Partial"),
            _v("8a8888", "Full Barre", 8),
        ),
        "maj7": (
            _v("332000", "Open Cmaj7"),
            _v("335453", "A Shape", 3),
            _v("xx5557", "Partial", 5),
            _v("xxaccc", "High", 10),
        ),
    },
    "A": {
        "maj": (
            _v("x02220", "Open A"),
            _v("x02225", "Open A (alt)"),
            _v("577655", "E Shape", 5),
            _v("x079a9", "High", 7),
        ),
        "m": (
            _v("x02210", "Open Am"),
            _v("x02555", "Partial Barre", 2),
            _v("577555", "Em Shape", 5),
            _v("x079a8", "High", 7),
        ),
        "7": (
            _v("x02020", "Open A7"),
            _v("x02223", "Barre", 2),
            _v("575655", "E7 Shape", 5),
            _v("x07989", "High", 7),
        ),
        "m7": (
            _v("x02010", "Open Am7"),
            _v("x02213", "Open Am7 (alt)"),
            _v("5x555x", "Shell", 5),
            _v("x05555", "Barre", 5),
            _v("575555", "Full Barre", 5),
            _v("x77988", "High", 7),
        ),
        "maj7": (
            _v("x02120", "Open Amaj7"),
            _v("x02224", "Barre", 2),
            _v("576655", "E Shape", 5),
            _v("x07999", "High", 7),
        ),
    },
    "E": {
        "maj": (
            _v("022100", "Open E"),
            _v("xx2454", "Partial"),
            _v("x76454", "A Shape", 4),
            _v("x79997", "High", 7),
        ),
        "m": (
            _v("022000", "Open Em"),
            _v("022453", "Partial", 2),
            _v("x79987", "Am Shape", 7),
            _v("ca99xx", "High", 9),
        ),
        "7": (
            _v("020100", "Open E7"),
            _v("x7675x", "Partial", 5),
            _v("779797", "Barre", 7),
            _v("xx999a", "High", 9),
        ),
        "m7": (
            _v("020000", "Open Em7"),
            _v("022030", "Open Em7 (alt)"),
            _v("0x000x", "Shell"),
            _v("022433", "Partial", 2),
            _v("779787", "Barre", 7),
            _v("xx998a", "High", 9),
        ),
        "maj7": (
            _v("021100", "Open Emaj7"),
            _v("xx2444", "Partial", 2),
            _v("x76444", "A Shape", 4),
            _v("779897", "Barre", 7),
        ),
    },
    "G": {
        "maj": (
            _v("320003", "Open G"),
            _v("355433", "E Shape", 3),
            _v("xx5787", "Partial"),
            _v("7a9787", "High", 7),
        ),
        "m": (
            _v("310033", "Open Gm"),
            _v("355333", "Em Shape", 3),
            _v("xx5786", "Partial"),
            _v("aaccba", "High", 10),
        ),
        "7": (
            _v("320001", "Open G7"),
            _v("353433", "E7 Shape", 3),
            _v("x55767", "A7 Shape", 5),
            _v("aacaca", "High", 10),
        ),
        "m7": (
            _v("3x333x", "Shell", 3),
            _v("353333", "Em7 Shape", 3),
            _v("x55766", "Am7 Shape", 5),
            _v("xa8a8a", "Partial", 8),
            _v("aacaba", "High", 10),
        ),
        "maj7": (
            _v("320002", "Open Gmaj7"),
            _v("354433", "E Shape", 3),
            _v("x55777", "A Shape", 5),
            _v("xacbca", "High", 10),
        ),
    },
    "D": {
        "maj": (
            _v("xx0232", "Open D"),
            _v("x54232", "Partial", 2),
            _v("x57775", "A Shape", 5),
            _v("accbaa", "E Shape", 10),
        ),
        "m": (
            _v("xx0231", "Open Dm"),
            _v("557765", "Am Shape", 5),
            _v("x8776x", "Partial", 6),
            _v("accaaa", "Em Shape", 10),
        ),
        "7": (
            _v("xx0212", "Open D7"),
            _v("x5453x", "Partial", 3),
            _v("557575", "A7 Shape", 5),
            _v("acabaa", "E7 Shape", 10),
        ),
        "m7": (
            _v("xx0211", "Open Dm7"),
            _v("x57565", "Am7 Shape", 5),
            _v("xx7768", "Partial", 7),
            _v("acaaaa", "Em7 Shape", 10),
        ),
        "maj7": (
            _v("xx0222", "Open Dmaj7"),
            _v("x54222", "Partial", 2),
            _v("557675", "A Shape", 5),
            _v("xx7779", "High", 7),
        ),
    },
    "F": {
        "maj": (
            _v("133211", "F Barre", 1),
            _v("xx3211", "Partial F"),
            _v("xx3565", "A Shape Partial", 3),
            _v("x87565", "High", 5),
            _v("x8aaa8", "Full High", 8),
        ),
        "m": (
            _v("133111", "Fm Barre", 1),
            _v("xx3564", "Partial", 3),
            _v("x8aa98", "Am Shape", 8),
            _v("dbaaxx", "High", 10),
        ),
        "7": (
            _v("131211", "F7 Barre", 1),
            _v("x33545", "A7 Shape", 3),
            _v("88a8a8", "E7 Shape", 8),
            _v("xxaaab", "High", 10),
        ),
        "m7": (
            _v("131111", "Fm7 Barre", 1),
            _v("1x111x", "Shell", 1),
            _v("xx3544", "Partial", 3),
            _v("88a898", "Am7 Shape", 8),
            _v("xxaa9b", "High", 10),
        ),
        "maj7": (
            _v("xx3210", "Partial Fmaj7"),
            _v("132211", "Fmaj7 Barre", 1),
            _v("x33555", "A Shape", 3),
            _v("88a9a8", "E Shape", 8),
        ),
    },
    "B": {
        "maj": (
            _v("224442", "A Shape", 2),
            _v("xx4447", "Partial", 4),
            _v("799877", "E Shape", 7),
            _v("x99bcb", "High", 9),
        ),
        "m": (
            _v("224432", "Am Shape", 2),
            _v("799777", "Em Shape", 7),
            _v("xx9bca", "Partial", 9),
            _v("xxcbca", "High", 11),
        ),
        "7": (
            _v("x21202", "Open B7"),
            _v("224242", "A7 Shape", 2),
            _v("797877", "E7 Shape", 7),
        ),
        "m7": (
            _v("x20202", "Open Bm7"),
            _v("224232", "Am7 Shape", 2),
            _v("797777", "Em7 Shape", 7),
        ),
        "maj7": (
            _v("x24342", "Amaj7 Shape", 2),
            _v("798877", "Emaj7 Shape", 7),
        ),
    },
    "Bb": {
        "maj": (
            _v("x13331", "A Shape", 1),
            _v("65333x", "Partial", 3),
            _v("688766", "E Shape", 6),
            _v("x88aba", "High", 8),
        ),
        "m": (
            _v("x13321", "Am Shape", 1),
            _v("688666", "Em Shape", 6),
        ),
        "7": (
            _v("x13131", "A7 Shape", 1),
            _v("686766", "E7 Shape", 6),
        ),
        "m7": (
            _v("x13121", "Am7 Shape", 1),
            _v("686666", "Em7 Shape", 6),
        ),
        "maj7": (
            _v("x13231", "Amaj7 Shape", 1),
            _v("687766", "Emaj7 Shape", 6),
        ),
    },
    "Eb": {
        "maj": (
            _v("x68886", "A Shape", 6),
            _v("x65343", "Partial"),
            _v("bddcbb", "E Shape", 11),
        ),
        "m": (
            _v("x68876", "Am Shape", 6),
            _v("bddbbb", "Em Shape", 11),
        ),
        "7": (
            _v("x68686", "A7 Shape", 6),
        ),
        "m7": (
            _v("x68676", "Am7 Shape", 6),
        ),
        "maj7": (
            _v("x68786", "Amaj7 Shape", 6),
        ),
    },
    "Ab": {
        "maj": (
            _v("466544", "E Shape", 4),
            _v("xbdddb", "A Shape", 11),
        ),
        "m": (
            _v("466444", "Em Shape", 4),
            _v("xbddcb", "Am Shape", 11),
        ),
        "7": (
            _v("464544", "E7 Shape", 4),
            _v("xbdbdb", "A7 Shape", 11),
        ),
        "m7": (
            _v("464444", "Em7 Shape", 4),
            _v("xbdbcb", "Am7 Shape", 11),
        ),
        "maj7": (
            _v("465544", "Emaj7 Shape", 4),
        ),
    },
    "Db": {
        "maj": (
            _v("x46664", "A Shape", 4),
            _v("9bba99", "E Shape", 9),
        ),
        "m": (
            _v("x46654", "Am Shape", 4),
            _v("9bb999", "Em Shape", 9),
        ),
        "7": (
            _v("x46464", "A7 Shape", 4),
        ),
        "m7": (
            _v("x46454", "Am7 Shape", 4),
        ),
        "maj7": (
            _v("x46564", "Amaj7 Shape", 4),
        ),
    },
    "F#": {
        "maj": (
            _v("244322", "E Shape", 2),
            _v("x44676", "A Shape", 4),
        ),
        "m": (
            _v("244222", "Em Shape", 2),
            _v("x9bba9", "Am Shape", 9),
        ),
        "7": (
            _v("242322", "E7 Shape", 2),
        ),
        "m7": (
            _v("242222", "Em7 Shape", 2),
        ),
        "maj7": (
            _v("243322", "Emaj7 Shape", 2),
        ),
    },
}

# Enharmonic spellings that share a table entry.
ROOT_ALIASES: Mapping[str, str] = MappingProxyType({
    "A#": "Bb",
    "D#": "Eb",
    "G#": "Ab",
    "C#": "Db",
    "Gb": "F#",
})

QUALITY_ALIASES: Mapping[str, str] = MappingProxyType({
    "major": "maj",
    "minor": "m",
    "min": "m",
    "dom7": "7",
    "dominant7": "7",
})

CHORD_DATABASE: Mapping[str, Mapping[str, tuple[RawVoicing, ...]]] = MappingProxyType({
    root: MappingProxyType(qualities) for root, qualities in _TABLE.items()
})


def parse_fret_char(char: str) -> int:
    """Fret number for one pattern character; -1 means muted."""
    if char in ("x", "X"):
        return -1
    if char.isdigit():
        return int(char)
    return ord(char.lower()) - ord("a") + 10


def _normalize_root(root: str) -> str:
    root = root.strip()
    if not root:
        return root
    root = root[0].upper() + root[1:]
    return ROOT_ALIASES.get(root, root)


def _normalize_quality(quality: str) -> str:
    quality = quality.strip().lower()
    return QUALITY_ALIASES.get(quality, quality)


def convert_voicing(root: str, raw: RawVoicing, quality: str = "") -> ChordVoicing:
    """Turn a raw fret pattern into diagram-ready positions.

    Pattern index 0 is string 6 (low E), index 5 is string 1 (high E).
    ``base_fret`` is the declared barre; otherwise the lowest fretted position
    when it sits above the 3rd fret, else 1 so open shapes stay at the nut.
    """
    positions: list[ChordDiagramPosition] = []
    muted: list[int] = []
    fretted: list[int] = []

    for i, char in enumerate(raw.frets):
        string = 6 - i
        fret = parse_fret_char(char)
        if fret < 0:
            muted.append(string)
            continue
        note = note_at(string, fret)
        positions.append(ChordDiagramPosition(
            position=GuitarPosition(string=string, fret=fret),
            interval=interval_for_semitones(semitone_distance(root, note)),  # type: ignore[arg-type]
            note=note,
        ))
        if fret > 0:
            fretted.append(fret)

    if raw.barre:
        base_fret = raw.barre
    elif fretted and min(fretted) > 3:
        base_fret = min(fretted)
    else:
        base_fret = 1

    return ChordVoicing(
        root=root,
        quality=quality,
        name=raw.name,
        positions=positions,
        base_fret=base_fret,
        muted_strings=muted,
    )


def lookup_voicings(root: str, quality: str) -> list[ChordVoicing]:
    """All reference voicings for a chord, most common first.

    Returns an empty list when the root or quality is unknown.
    """
    table_root = _normalize_root(root)
    qualities = CHORD_DATABASE.get(table_root)
    if qualities is None:
        logger.debug(f"No chord table entry for root {root!r}")
        return []

    table_quality = _normalize_quality(quality)
    raw_voicings = qualities.get(table_quality)
    if raw_voicings is None:
        logger.debug(f"No {table_quality!r} voicings for root {table_root}")
        return []

    # Intervals are computed against the spelling the caller used; pitch
    # classes are identical across the alias so results are unchanged.
    display_root = root.strip()[0].upper() + root.strip()[1:]
    return [convert_voicing(display_root, rv, table_quality) for rv in raw_voicings]


def get_voicing(root: str, quality: str, index: int = 0) -> ChordVoicing | None:
    """One voicing by position in the table, or None when out of range."""
    voicings = lookup_voicings(root, quality)
    if index < 0 or index >= len(voicings):
        return None
    return voicings[index]


def get_available_qualities(root: str) -> list[str]:
    """Quality keys stored for a root (empty when the root is unknown)."""
    qualities = CHORD_DATABASE.get(_normalize_root(root))
    return list(qualities) if qualities else []


def get_available_roots() -> list[str]:
    """Canonical roots in the table, alias spellings excluded."""
    return list(CHORD_DATABASE)
