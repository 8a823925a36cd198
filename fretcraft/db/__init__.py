"""
Database module for Fretcraft.

Provides async SQLAlchemy support with PostgreSQL and SQLite.
"""
from __future__ import annotations

from fretcraft.db.database import (
    get_db,
    init_db,
    close_db,
    AsyncSessionLocal,
)
from fretcraft.db.models import Chat, Lesson

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "AsyncSessionLocal",
    "Chat",
    "Lesson",
]
