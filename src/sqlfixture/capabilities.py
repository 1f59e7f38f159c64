"""Narrow capability sets shared by the connection manager and the fixture engine.

Consumers depend on the smallest capability they need: a repository under
test only *connects*, a test helper may only *clear a table*.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sqlalchemy.engine import Connection


@runtime_checkable
class SupportsConnect(Protocol):
    """Can hand out a connection to the test database."""

    def get_connection(self) -> Connection: ...


@runtime_checkable
class SupportsFixtureReset(Protocol):
    """Can reset the database to the state described by a fixture."""

    def apply(self, fixture: Any = None) -> None: ...


@runtime_checkable
class SupportsTableClear(Protocol):
    """Can delete every row of one table."""

    def clear_table(self, name: str) -> int: ...
