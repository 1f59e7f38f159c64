"""
Fixture engine: puts the test database into the state a fixture describes.

Usage::

    engine = FixtureEngine(connections, "person_fixture.xml", caller=__name__)
    engine.apply()                      # clean-insert of every table in the fixture
    engine.clear_table("main.audit_log")
    engine.create_checker("SELECT name FROM main.person ORDER BY id").assert_row_count(2)

Clean-insert deletes the rows of every fixture table in reverse document
order, then inserts the rows in document order, all in one transaction.
A document listing parent tables before child tables thus satisfies foreign
keys in both phases. Tables absent from the fixture are left untouched.
"""

from __future__ import annotations

import base64
import datetime
import logging
import os
import uuid
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from pathlib import Path
from typing import Any, TypeAlias

from sqlalchemy import Column as SqlColumn
from sqlalchemy import MetaData
from sqlalchemy import Table as SqlTable
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from sqlfixture.assertion import RowComparator
from sqlfixture.config import FixtureSettings
from sqlfixture.database import ConnectionManager
from sqlfixture.dataset import FixtureDocument, FixtureStore, Table, compose, describe, dump_document, load_document
from sqlfixture.exceptions import ConfigurationMisuse, FixtureApplicationFailure, SqlFixtureError
from sqlfixture.resource_locator import CallerHint, ResourceLocator

logger = logging.getLogger(__name__)

FixtureSource: TypeAlias = FixtureStore | FixtureDocument | Table | str | os.PathLike[str]


class FixtureState(StrEnum):
    IDLE = "idle"
    APPLYING = "applying"
    READY = "ready"
    FAILED = "failed"


class DatabaseOperation(StrEnum):
    """What to do with the fixture tables on setup or teardown."""

    NONE = "none"
    CLEAN_INSERT = "clean_insert"
    INSERT = "insert"
    DELETE_ALL = "delete_all"


# ---------------------------------------------------------------------------
# Cell value conversion
# ---------------------------------------------------------------------------

_TRUE_VALUES = frozenset({"true", "1", "yes", "y", "t"})
_FALSE_VALUES = frozenset({"false", "0", "no", "n", "f"})


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"'{value}' is not a boolean")


def _parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a decimal number") from None


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    Decimal: _parse_decimal,
    datetime.datetime: datetime.datetime.fromisoformat,
    datetime.date: datetime.date.fromisoformat,
    datetime.time: datetime.time.fromisoformat,
    bytes: lambda value: base64.b64decode(value, validate=True),
    uuid.UUID: uuid.UUID,
}


def coerce_value(column: SqlColumn[Any], value: Any) -> Any:
    """Convert a text cell to the Python type of the live column.

    Non-string values (e.g. from a DataFrame) and NULL pass through, as do
    values of columns whose type has no known Python counterpart.
    """
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    converter = _CONVERTERS.get(python_type)
    if converter is None:
        return value
    try:
        return converter(value.strip())
    except ValueError as exc:
        raise ConfigurationMisuse(
            f"The value '{value}' of the column '{column.name}' can't be converted to {python_type.__name__}: {exc}"
        ) from exc


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class FixtureEngine:
    """
    Applies fixtures to the test database and tracks the outcome.

    The fixture is a :class:`FixtureStore`, a :class:`FixtureDocument`, a
    single :class:`Table` or the name of a fixture file. When none is given,
    ``FixtureSettings.default_dataset`` is loaded on first use.

    States: ``IDLE`` until the first apply, ``APPLYING`` while the database
    is being changed, then ``READY`` or ``FAILED``. Applying again is allowed
    from any state.
    """

    def __init__(
        self,
        connections: ConnectionManager | None = None,
        fixture: FixtureSource | None = None,
        *,
        caller: CallerHint | Sequence[CallerHint] | None = None,
        locator: ResourceLocator | None = None,
        settings: FixtureSettings | None = None,
        setup_operation: DatabaseOperation = DatabaseOperation.CLEAN_INSERT,
        teardown_operation: DatabaseOperation = DatabaseOperation.NONE,
    ) -> None:
        if settings is None:
            settings = connections.settings if connections is not None else FixtureSettings()
        self._settings = settings
        self._connections = connections or ConnectionManager(settings=settings)
        self._locator = locator or ResourceLocator(settings=settings)
        self._caller = caller
        self._source = fixture
        self._fixture: FixtureStore | None = None
        self._last_applied: FixtureStore | None = None
        self.setup_operation = DatabaseOperation(setup_operation)
        self.teardown_operation = DatabaseOperation(teardown_operation)
        self.state = FixtureState.IDLE

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    def get_connection(self) -> Connection:
        return self._connections.get_connection()

    @property
    def fixture(self) -> FixtureStore:
        """The configured fixture, loaded on first access."""
        if self._fixture is None:
            source = self._source if self._source is not None else self._settings.default_dataset
            self._fixture = self._to_store(source)
        return self._fixture

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, name: str | os.PathLike[str], caller: CallerHint | Sequence[CallerHint] | None = None) -> FixtureDocument:
        """Locate and parse a fixture document (default folder, next to the caller, then sys.path)."""
        path = self._locator.find(name, caller if caller is not None else self._caller)
        document = load_document(path)
        if self._settings.dump_dataset:
            logger.info("Fixture document %s:\n%s", path, dump_document(document))
        return document

    def _to_store(self, source: FixtureSource) -> FixtureStore:
        if isinstance(source, FixtureStore):
            return source
        if isinstance(source, FixtureDocument | Table):
            return compose(source)
        if isinstance(source, str | os.PathLike):
            return compose(self.load(source))
        raise ConfigurationMisuse(f"Unsupported fixture: {source!r}")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def apply(self, fixture: FixtureSource | None = None) -> None:
        """Run the setup operation with *fixture*, or with the configured fixture when omitted."""
        store = self._to_store(fixture) if fixture is not None else self.fixture
        self._last_applied = store
        self._run(self.setup_operation, store)

    def replace(self, fixture: FixtureSource) -> None:
        """Make *fixture* the configured fixture (the previous one is discarded) and clean-insert it.

        Always a clean-insert, whatever the configured setup operation.
        """
        self._source = fixture
        self._fixture = None
        store = self.fixture
        self._last_applied = store
        self._run(DatabaseOperation.CLEAN_INSERT, store)

    def teardown(self) -> None:
        """Run the teardown operation on the fixture applied last; a no-op by default."""
        if self.teardown_operation is DatabaseOperation.NONE:
            logger.debug("teardown: nothing to do")
            return
        self._run(self.teardown_operation, self._last_applied or self.fixture)

    def clear_table(self, name: str) -> int:
        """Delete every row of *name* and return how many were deleted."""
        connection = self._connections.get_connection()
        try:
            count = self._delete_all(connection, name, MetaData())
            connection.commit()
        except SQLAlchemyError as exc:
            self._rollback(connection)
            raise self._failure(exc, name, None) from exc
        logger.info("clear_table: %d rows deleted from %s", count, self._connections.qualify(name))
        return count

    def create_checker(self, sql: str, params: Mapping[str, Any] | None = None) -> RowComparator:
        """Run a verification query against the test database."""
        return RowComparator.for_query(self._connections, sql, params)

    def _run(self, operation: DatabaseOperation, store: FixtureStore) -> None:
        if operation is DatabaseOperation.NONE:
            logger.debug("Database operation NONE, the fixture %s is not applied", store.table_names)
            return

        self.state = FixtureState.APPLYING
        try:
            connection = self._connections.get_connection()
        except Exception:
            self.state = FixtureState.FAILED
            raise

        logger.debug("Running %s with %s", operation, describe(store))
        metadata = MetaData()
        current: str | None = None
        try:
            if operation in (DatabaseOperation.CLEAN_INSERT, DatabaseOperation.DELETE_ALL):
                for table in reversed(store.tables):
                    current = table.name
                    self._delete_all(connection, table.name, metadata)
            if operation in (DatabaseOperation.CLEAN_INSERT, DatabaseOperation.INSERT):
                for table in store.tables:
                    current = table.name
                    self._insert(connection, table, metadata)
            connection.commit()
        except (SQLAlchemyError, SqlFixtureError) as exc:
            self._rollback(connection)
            self.state = FixtureState.FAILED
            raise self._failure(exc, current, store) from exc
        self.state = FixtureState.READY
        logger.info("%s done for tables %s", operation, store.table_names)

    def _delete_all(self, connection: Connection, name: str, metadata: MetaData) -> int:
        sql_table = self._connections.reflect_table(name, metadata)
        return connection.execute(sql_table.delete()).rowcount

    def _insert(self, connection: Connection, table: Table, metadata: MetaData) -> None:
        if not table.rows:
            return
        sql_table = self._connections.reflect_table(table.name, metadata)
        live_columns = [self._live_column(sql_table, table, name) for name in table.column_names]
        rows = [{column.name: coerce_value(column, value) for column, value in zip(live_columns, row)} for row in table.rows]
        connection.execute(sql_table.insert(), rows)
        logger.debug("Inserted %d rows into %s", len(rows), sql_table.fullname)

    @staticmethod
    def _live_column(sql_table: SqlTable, table: Table, name: str) -> SqlColumn[Any]:
        for column in sql_table.columns:
            if column.name.lower() == name.lower():
                return column
        raise ConfigurationMisuse(
            f"The fixture table '{table.name}' has the column '{name}' but the database table "
            f"{sql_table.fullname} has only {[column.name for column in sql_table.columns]}"
        )

    @staticmethod
    def _rollback(connection: Connection) -> None:
        try:
            connection.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback failed: %s", exc)

    def _failure(self, exc: Exception, table: str | None, store: FixtureStore | None) -> FixtureApplicationFailure:
        url = self._connections.url
        description = describe(store, self._connections)
        explanation = self._connections.interpreter.explain_chain(exc)
        if isinstance(exc, NoSuchTableError):
            msg = (
                f"The table '{table}' doesn't exist in the test database {url}. Create the database and its "
                f"tables first, e.g. with sqlfixture-create (relative paths are resolved against the current "
                f"work dir: {Path.cwd()})."
            )
        else:
            msg = f"Applying the fixture failed at the table '{table}': {exc}"
        if explanation is not None:
            msg = f"{msg} {explanation}"
        msg = f"{msg} Fixture: {description}. Test DB URL: {url}"
        logger.error("%s", msg)
        return FixtureApplicationFailure(msg, table=table, description=description, explanation=explanation, url=url)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._connections.close()

    def __enter__(self) -> FixtureEngine:
        self.apply()
        return self

    def __exit__(self, *exc_info: object) -> None:
        try:
            self.teardown()
        finally:
            self.close()
