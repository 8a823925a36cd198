"""The migration must build the same schema as the ORM models."""
from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from fretcraft.db.database import Base

MIGRATION = Path(__file__).resolve().parent.parent / "alembic" / "versions" / "0001_initial_schema.py"


def _load_migration() -> ModuleType:
    spec = importlib.util.spec_from_file_location("migration_0001", MIGRATION)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestInitialMigration:

    def test_upgrade_matches_models(self) -> None:

        migration = _load_migration()
        engine = sa.create_engine("sqlite://")

        with engine.begin() as conn:
            with Operations.context(MigrationContext.configure(conn)):
                migration.upgrade()
            inspector = sa.inspect(conn)

            assert set(inspector.get_table_names()) == set(Base.metadata.tables)
            for name, table in Base.metadata.tables.items():
                assert {c["name"] for c in inspector.get_columns(name)} == {c.name for c in table.columns}
            assert "ix_lessons_updated_at" in {i["name"] for i in inspector.get_indexes("lessons")}
            assert inspector.get_foreign_keys("chats")[0]["referred_table"] == "lessons"

    def test_downgrade_drops_everything(self) -> None:

        migration = _load_migration()
        engine = sa.create_engine("sqlite://")

        with engine.begin() as conn:
            with Operations.context(MigrationContext.configure(conn)):
                migration.upgrade()
                migration.downgrade()

            assert sa.inspect(conn).get_table_names() == []
