"""The migrations, applied in order, build the same tables as the models."""

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from glowstock.db.base import Base
import glowstock.models  # noqa: F401

VERSIONS = Path(__file__).resolve().parent.parent / "alembic" / "versions"


def _load_migrations():
    modules = []
    for path in sorted(VERSIONS.glob("[0-9][0-9][0-9]_*.py")):
        spec = importlib.util.spec_from_file_location(path.stem, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        modules.append(module)
    return modules


def test_revisions_form_a_chain():
    migrations = _load_migrations()
    assert [m.revision for m in migrations] == ["001", "002"]
    assert migrations[0].down_revision is None
    for previous, current in zip(migrations, migrations[1:]):
        assert current.down_revision == previous.revision


def test_migrations_match_models():
    engine = create_engine("sqlite:///:memory:")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            for migration in _load_migrations():
                migration.upgrade()

        inspector = inspect(conn)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for name, table in Base.metadata.tables.items():
            columns = {c["name"] for c in inspector.get_columns(name)}
            assert columns == set(table.columns.keys()), name


def test_downgrade_removes_purchase_tables():
    migrations = _load_migrations()
    engine = create_engine("sqlite:///:memory:")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            for migration in migrations:
                migration.upgrade()
            migrations[-1].downgrade()

        tables = set(inspect(conn).get_table_names())
        assert "suppliers" not in tables
        assert "purchase_invoices" not in tables
        assert "materials" in tables
