"""Diagnostics for fixtures: row counts and duplicated primary keys.

Nothing here blocks an insert. The point is to make fixture mistakes (two
rows with the same key) visible in the log before the database rejects them
with a less helpful uniqueness violation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlfixture.dataset.models import FixtureDocument, FixtureStore, Table

if TYPE_CHECKING:
    from sqlfixture.database.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"


def find_duplicates(table: Table, primary_keys: Sequence[str]) -> set[str]:
    """Return the (joined) primary keys that occur more than once in *table*.

    Composite keys are joined with ``|`` in key order. An empty set is
    returned when the table has no primary key.
    """
    duplicates: set[str] = set()
    if not primary_keys:
        logger.debug("find_duplicates(%s): no primary keys on the table", table.name)
        return duplicates

    missing = [key for key in primary_keys if not table.has_column(key)]
    if missing:
        logger.debug("find_duplicates(%s): the fixture lacks the key columns %s", table.name, missing)
        return duplicates

    seen: set[str] = set()
    for row in range(table.row_count):
        joined = KEY_SEPARATOR.join(str(table.get_value(row, key)) for key in primary_keys)
        if joined in seen:
            duplicates.add(joined)
            logger.debug("find_duplicates(%s): duplicate found for primary key='%s'", table.name, joined)
        else:
            seen.add(joined)
    return duplicates


def find_pk_duplicates(table: Table, connections: ConnectionManager) -> set[str]:
    """Like :func:`find_duplicates` with the keys read from the live schema."""
    try:
        keys = connections.primary_keys(table.name)
    except Exception as exc:
        logger.warning("find_pk_duplicates: failed to fetch actual PKs from DB for %s: %s", table.name, exc)
        keys = []
    return find_duplicates(table, keys)


def describe(fixture: FixtureStore | FixtureDocument | None, connections: ConnectionManager | None = None) -> str:
    """Summarise a fixture for the log: table names, row counts and, given a connection, duplicate keys."""
    if fixture is None:
        return "None"

    parts = [f"{type(fixture).__name__} with tables(row count):"]
    for table in fixture.tables:
        parts.append(f"{table.name}({table.row_count})")
        if connections is not None:
            duplicates = find_pk_duplicates(table, connections)
            if duplicates:
                parts.append(f"[duplicated primary keys: {sorted(duplicates)}]")
    return " ".join(parts)
