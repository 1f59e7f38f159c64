"""Connection management for the test database."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NoReturn

from sqlalchemy import MetaData, event, inspect
from sqlalchemy import Table as SqlTable
from sqlalchemy.engine import Connection, Engine, create_engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sqlfixture.config import ConfigResolver, ConnectionProperties, FixtureSettings
from sqlfixture.exceptions import ConnectionFailure, UnsupportedOperation
from sqlfixture.interpreter import ErrorInterpreter, default_interpreter, interpreter_for_driver

if TYPE_CHECKING:
    from sqlfixture.database.data_source import DataSourceAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualifiedName:
    schema: str
    table: str

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


class ConnectionManager:
    """
    Opens, caches and hands out the connection to the test database.

    The connection is created on first use and reused for the lifetime of the
    manager (unless replaced explicitly). Table names handled by the manager
    are always schema-qualified: an unqualified name gets the connection's
    default schema spelled out, and :meth:`set_schema` is refused.

    Not meant to be shared between threads; give every consumer its own
    manager.
    """

    def __init__(
        self,
        properties: ConnectionProperties | None = None,
        *,
        resolver: ConfigResolver | None = None,
        settings: FixtureSettings | None = None,
    ) -> None:
        self._settings = settings or FixtureSettings()
        self._resolver = resolver
        self._properties = properties
        self._engine: Engine | None = None
        self._connection: Connection | None = None
        self._default_schema: str | None = None
        self._interpreter: ErrorInterpreter = default_interpreter()

    @property
    def settings(self) -> FixtureSettings:
        return self._settings

    @property
    def properties(self) -> ConnectionProperties:
        """The connection properties, resolved once on first access and fixed thereafter."""
        if self._properties is None:
            resolver = self._resolver or ConfigResolver(settings=self._settings)
            self._properties = resolver.properties()
        return self._properties

    @property
    def url(self) -> str:
        """The database URL with the password masked."""
        return self.properties.masked_url()

    @property
    def interpreter(self) -> ErrorInterpreter:
        """Error interpreter for the configured database; the no-op one before the first connection."""
        return self._interpreter

    @property
    def engine(self) -> Engine:
        """Return the SQLAlchemy Engine, creating it on first use."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        url = self.properties.sqlalchemy_url()
        self._interpreter = interpreter_for_driver(url.drivername)

        engine_kwargs: dict = {"echo": self._settings.echo_sql}
        backend = url.get_backend_name()
        if backend == "sqlite":
            engine_kwargs["connect_args"] = {"timeout": self._settings.lock_timeout}
        elif backend == "postgresql":
            engine_kwargs["connect_args"] = {"options": f"-c lock_timeout={int(self._settings.lock_timeout * 1000)}"}

        engine = create_engine(url, **engine_kwargs)
        if backend == "sqlite" and self._settings.enforce_foreign_keys:
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        logger.info("Test database engine initialised: %s (interpreter: %r)", self.url, self._interpreter)
        return engine

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def get_connection(self) -> Connection:
        """Return the cached connection, opening it on first use."""
        if self._connection is None or self._connection.closed:
            self._connection = self._connect()
        return self._connection

    def _connect(self) -> Connection:
        try:
            return self.engine.connect()
        except SQLAlchemyError as exc:
            explanation = self._interpreter.explain_chain(exc)
            if explanation is not None:
                logger.error("Connecting to %s failed: %s", self.url, explanation)
                raise ConnectionFailure(explanation, self.url) from exc
            if isinstance(exc, DBAPIError):
                hint = (
                    f"Connecting to the test database {self.url} failed. Check the configured URL "
                    "and that the schema used by your fully qualified table names exists."
                )
                logger.warning("%s Error: %s", hint, exc)
                exc.add_note(hint)
            raise

    def replace_connection(self, connection: Connection) -> None:
        """Use *connection* from now on; the previously cached one is closed."""
        if self._connection is not None and self._connection is not connection:
            self._close_quietly(self._connection)
        self._connection = connection
        self._default_schema = None

    def get_data_source(self) -> DataSourceAdapter:
        """Return a connection-factory view of this manager."""
        from sqlfixture.database.data_source import DataSourceAdapter

        return DataSourceAdapter(self)

    # ------------------------------------------------------------------
    # Qualified names and schema introspection
    # ------------------------------------------------------------------

    def set_schema(self, schema: str) -> NoReturn:
        raise UnsupportedOperation(
            "Table names must always be fully qualified (i.e. schema.table) and thus setting a "
            f"default schema ('{schema}') isn't supported. If the code you test doesn't use a schema, "
            "use the default schema of your database (main for SQLite, public for PostgreSQL) "
            "in your DDL and fixture files."
        )

    def default_schema(self) -> str:
        if self._default_schema is None:
            schema = inspect(self.get_connection()).default_schema_name
            if not schema:
                raise UnsupportedOperation(
                    f"The database {self.url} reports no default schema; use fully qualified table names (schema.table)"
                )
            self._default_schema = schema
        return self._default_schema

    def qualify(self, name: str) -> QualifiedName:
        """Split ``schema.table``; an unqualified name gets the default schema made explicit."""
        schema, dot, table = name.rpartition(".")
        if not dot:
            return QualifiedName(self.default_schema(), name)
        return QualifiedName(schema, table)

    def reflect_table(self, name: str, metadata: MetaData | None = None) -> SqlTable:
        """Load the live definition of a table; raises ``NoSuchTableError`` when it doesn't exist."""
        qualified = self.qualify(name)
        return SqlTable(
            qualified.table,
            metadata if metadata is not None else MetaData(),
            schema=qualified.schema,
            autoload_with=self.get_connection(),
        )

    def primary_keys(self, name: str) -> list[str]:
        """Primary key columns of a table, in key order; empty when none is declared."""
        qualified = self.qualify(name)
        constraint = inspect(self.get_connection()).get_pk_constraint(qualified.table, schema=qualified.schema)
        return list(constraint.get("constrained_columns") or [])

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    @staticmethod
    def _close_quietly(connection: Connection) -> None:
        try:
            connection.close()
        except Exception as exc:
            logger.warning("Failed to close the connection: %s", exc)

    def close(self) -> None:
        """Close the cached connection and dispose of the engine. Used for clean shutdown."""
        if self._connection is not None:
            self._close_quietly(self._connection)
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Test database engine disposed")

    def __enter__(self) -> ConnectionManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
