"""
Database creation and schema bootstrap.

This module creates the test database (where the backend supports creating
it on demand) and executes a DDL file against it, so that the tests find the
tables their fixtures refer to.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from sqlfixture.config import ConfigResolver, ConnectionKey, FixtureSettings
from sqlfixture.database.connection_manager import ConnectionManager
from sqlfixture.exceptions import SchemaBootstrapFailure
from sqlfixture.resource_locator import CallerHint, ResourceLocator

logger = logging.getLogger(__name__)


def split_statements(ddl: str) -> list[str]:
    """Drop ``--`` comment lines and blank lines, then split the rest on ``;``."""
    lines = [line.strip() for line in ddl.splitlines()]
    kept = "\n".join(line for line in lines if line and not line.startswith("--"))
    return [statement.strip() for statement in kept.split(";") if statement.strip()]


def create_database_url(url: str) -> str:
    """Return *url* modified so that connecting creates the database if it doesn't exist.

    For a SQLite URI such as ``sqlite:///file:testData/testDB.sqlite?mode=rw&uri=true``
    the mode becomes ``rwc``; the database folder is created as well. Other
    backends can't create a database through the URL, their URL is returned
    unchanged.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        logger.info("create_database_url: %s can't create the database on demand, it must exist already", parsed.get_backend_name())
        return url

    database = parsed.database or ""
    if not database or database == ":memory:" or "mode=memory" in database:
        return url

    path = database.removeprefix("file:").split("?", 1)[0]
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    if parsed.query.get("uri") in ("true", "1") or database.startswith("file:"):
        parsed = parsed.update_query_dict({"mode": "rwc"})
    return parsed.render_as_string(hide_password=False)


class SchemaBootstrapper:
    """Read a DDL file and execute its statements against the test database."""

    def __init__(
        self,
        connections: ConnectionManager,
        locator: ResourceLocator | None = None,
        *,
        settings: FixtureSettings | None = None,
    ) -> None:
        if connections is None:
            raise ValueError("The ConnectionManager may not be None")
        self._connections = connections
        self._settings = settings or connections.settings
        self._locator = locator or ResourceLocator(settings=self._settings)
        self.ddl_path: Path | None = None

    def read_ddl(self, name: str | None = None, caller: CallerHint | Sequence[CallerHint] | None = None) -> list[str]:
        """Locate the DDL file (``create_db_content.ddl`` by default) and return its statements."""
        self.ddl_path = self._locator.find(name or self._settings.ddl_file, caller)
        statements = split_statements(self.ddl_path.read_text(encoding="utf-8"))
        logger.info("read_ddl: %d statements read from %s", len(statements), self.ddl_path)
        return statements

    def execute_ddl(self, statements: Sequence[str]) -> int:
        """Execute the statements in one transaction and return how many were run."""
        connection = self._connections.get_connection()
        try:
            for statement in statements:
                logger.info("execute_ddl: executing statement: %s", statement)
                connection.exec_driver_sql(statement)
            connection.commit()
        except SQLAlchemyError as exc:
            connection.rollback()
            explanation = self._connections.interpreter.explain_chain(exc)
            msg = (
                f"DDL execution failed. DB URL: '{self._connections.url}' (relative paths are resolved "
                f"against the current work dir: {Path.cwd()}). DDL file: {self.ddl_path}."
            )
            if explanation is not None:
                msg = f"{msg} {explanation}"
            logger.error("execute_ddl: %s", msg)
            raise SchemaBootstrapFailure(msg) from exc
        return len(statements)

    def load_ddl(self, name: str | None = None, caller: CallerHint | Sequence[CallerHint] | None = None) -> int:
        """Read and execute a DDL file."""
        return self.execute_ddl(self.read_ddl(name, caller))


def create_and_initialize(
    ddl_name: str | None = None,
    *,
    resolver: ConfigResolver | None = None,
    settings: FixtureSettings | None = None,
    locator: ResourceLocator | None = None,
) -> int:
    """
    Create the test database if needed and execute the DDL file against it.

    The database is the one the tests connect to (same configuration), with
    the URL modified to request on-demand creation.
    """
    settings = settings or FixtureSettings()
    resolver = resolver or ConfigResolver(settings=settings, locator=locator)
    url = create_database_url(resolver.resolve(ConnectionKey.URL))
    resolver.override(ConnectionKey.URL, url)

    connections = ConnectionManager(resolver=resolver, settings=settings)
    try:
        count = SchemaBootstrapper(connections, locator, settings=settings).load_ddl(ddl_name)
    finally:
        connections.close()
    logger.info("create_and_initialize: done, %d DDL statements executed", count)
    return count
