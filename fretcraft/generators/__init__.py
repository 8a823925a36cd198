"""Programmatic diagram generators (scales, shell voicings)."""
from __future__ import annotations

from fretcraft.generators.chord_generator import generate_shell_voicing
from fretcraft.generators.scale_generator import SCALE_FORMULAS, generate_scale

__all__ = ["SCALE_FORMULAS", "generate_scale", "generate_shell_voicing"]
