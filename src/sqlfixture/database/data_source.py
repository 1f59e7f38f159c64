"""Present a ConnectionManager as a connection factory.

Code under test often wants something it can *call* to obtain a connection
rather than a connection. The adapter hands out the manager's cached
connection, so the code under test sees exactly the data the fixture wrote.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import Connection

from sqlfixture.exceptions import UnsupportedOperation

if TYPE_CHECKING:
    from sqlfixture.database.connection_manager import ConnectionManager


class DataSourceAdapter:
    """Connection factory backed by a :class:`ConnectionManager`."""

    def __init__(self, connections: ConnectionManager) -> None:
        if connections is None:
            raise ValueError("The ConnectionManager may not be None, it is necessary to create connections")
        self._connections = connections

    @property
    def url(self) -> str:
        return self._connections.url

    def get_connection(self, username: str | None = None, password: str | None = None) -> Connection:
        """Return the manager's connection; credentials other than the configured ones are not supported."""
        if username is not None or password is not None:
            raise UnsupportedOperation("This data source supports only get_connection() with the configured credentials")
        return self._connections.get_connection()

    def __call__(self) -> Connection:
        return self.get_connection()

    def __repr__(self) -> str:
        return f"DataSourceAdapter(url={self.url!r})"
