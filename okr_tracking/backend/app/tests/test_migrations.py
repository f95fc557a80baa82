import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

MIGRATION = (
    Path(__file__).resolve().parents[4]
    / "alembic"
    / "versions"
    / "20251106_create_okr_tables.py"
)


def load_migration():
    spec = importlib.util.spec_from_file_location("create_okr_tables", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run(engine, step):
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            step()


def test_upgrade_creates_tables_and_constraints():
    migration = load_migration()
    engine = create_engine("sqlite://")

    run(engine, migration.upgrade)

    inspector = inspect(engine)
    assert {"users", "kpis", "objectives", "objective_kpi_links"} <= set(inspector.get_table_names())
    unique = inspector.get_unique_constraints("objective_kpi_links")
    assert any(set(c["column_names"]) == {"objective_id", "kpi_id"} for c in unique)
    indexed = {tuple(index["column_names"]) for index in inspector.get_indexes("objectives")}
    assert ("parent_id",) in indexed
    assert "is_featured" in {c["name"] for c in inspector.get_columns("objectives")}


def test_downgrade_drops_tables():
    migration = load_migration()
    engine = create_engine("sqlite://")

    run(engine, migration.upgrade)
    run(engine, migration.downgrade)

    assert inspect(engine).get_table_names() == []


def test_revision_identifiers():
    migration = load_migration()

    assert migration.revision == "20251106_okr"
    assert migration.down_revision is None
