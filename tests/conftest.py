"""Shared test fixtures.

Every test runs in its own working directory with no ``SQLFIXTURE_*``
variables set, so neither the default ``testData`` folder nor the
environment leak between tests. The ``connections`` fixture provides a
file-backed SQLite database with the schema below already created.
"""

import os
from collections.abc import Iterator

import pytest

from sqlfixture.config import ConnectionProperties, FixtureSettings
from sqlfixture.database import ConnectionManager, SchemaBootstrapper, split_statements

SCHEMA_DDL = """
-- parents first, the engine deletes in reverse order
CREATE TABLE person (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    born DATE,
    active BOOLEAN
);
CREATE TABLE address (
    id INTEGER PRIMARY KEY,
    person_id INTEGER NOT NULL REFERENCES person(id),
    city TEXT
);
CREATE TABLE audit_log (
    entry TEXT
);
CREATE TABLE membership (
    person_id INTEGER NOT NULL,
    club TEXT NOT NULL,
    PRIMARY KEY (person_id, club)
);
"""


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    """Run each test from an empty working directory without SQLFIXTURE_* variables."""
    for name in list(os.environ):
        if name.upper().startswith("SQLFIXTURE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def settings() -> FixtureSettings:
    return FixtureSettings(_env_file=None, lock_timeout=0.2)  # type: ignore[call-arg]


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'test.sqlite'}"


@pytest.fixture
def properties(db_url) -> ConnectionProperties:
    return ConnectionProperties(driver="sqlite+pysqlite", url=db_url, username="", password="")


@pytest.fixture
def connections(properties, settings) -> Iterator[ConnectionManager]:
    """A ConnectionManager over a fresh database holding the test schema."""
    manager = ConnectionManager(properties, settings=settings)
    SchemaBootstrapper(manager, settings=settings).execute_ddl(split_statements(SCHEMA_DDL))
    yield manager
    manager.close()
