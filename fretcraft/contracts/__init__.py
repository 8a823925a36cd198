"""Typed shapes shared across module boundaries (JSON values, completion-service messages)."""
