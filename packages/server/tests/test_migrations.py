"""
The initial migration builds the same tables the models declare.
"""

import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlmodel import SQLModel

import todo_api.models  # noqa: F401

MIGRATION = Path(__file__).parent.parent / "alembic" / "versions" / "0001_initial_schema.py"


@pytest.fixture(scope="module")
def migration():
    module_spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def connection():
    engine = sa.create_engine("sqlite://")
    with engine.begin() as conn:
        yield conn
    engine.dispose()


def run(connection, step):
    with Operations.context(MigrationContext.configure(connection)):
        step()


def test_upgrade_matches_models(migration, connection):
    run(connection, migration.upgrade)
    inspector = sa.inspect(connection)
    assert set(inspector.get_table_names()) == set(SQLModel.metadata.tables)
    for name, table in SQLModel.metadata.tables.items():
        migrated = {c["name"] for c in inspector.get_columns(name)}
        assert migrated == {c.name for c in table.columns}, name


def test_membership_uniqueness(migration, connection):
    run(connection, migration.upgrade)
    constraints = sa.inspect(connection).get_unique_constraints("organization_memberships")
    assert any(set(c["column_names"]) == {"user_id", "organization_id"} for c in constraints)


def test_downgrade_removes_everything(migration, connection):
    run(connection, migration.upgrade)
    run(connection, migration.downgrade)
    assert sa.inspect(connection).get_table_names() == []
