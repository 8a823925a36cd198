"""Fretcraft: AI-assisted guitar lesson authoring."""
