"""Provide the :class:`ErrorInterpreter` appropriate for the underlying database."""

from __future__ import annotations

import logging

from sqlalchemy.engine import Connection

from sqlfixture.interpreter.base import ErrorInterpreter, NoOpInterpreter
from sqlfixture.interpreter.postgresql import PostgresqlInterpreter
from sqlfixture.interpreter.sqlite import SqliteInterpreter

logger = logging.getLogger(__name__)

_DEFAULT_INTERPRETER = NoOpInterpreter()

_INTERPRETERS: dict[str, type[ErrorInterpreter]] = {
    "sqlite": SqliteInterpreter,
    "postgresql": PostgresqlInterpreter,
}


def default_interpreter() -> ErrorInterpreter:
    """Return the shared no-op interpreter.

    Use it before the database is known; it never explains anything, so
    replace it with :func:`interpreter_for_driver` or
    :func:`interpreter_for_connection` as soon as possible.
    """
    return _DEFAULT_INTERPRETER


def _for_database(name: str) -> ErrorInterpreter | None:
    lowered = name.lower()
    for database, interpreter_class in _INTERPRETERS.items():
        if database in lowered:
            return interpreter_class()
    return None


def interpreter_for_driver(driver: str | None) -> ErrorInterpreter:
    """Pick the interpreter by a SQLAlchemy driver name such as ``sqlite+pysqlite``."""
    if not driver:
        return _DEFAULT_INTERPRETER
    backend = driver.split("+", 1)[0]
    interpreter = _for_database(backend)
    if interpreter is None:
        logger.info("interpreter_for_driver(%s): unknown driver, returning the no-op interpreter", driver)
        return _DEFAULT_INTERPRETER
    return interpreter


def interpreter_for_connection(connection: Connection | None) -> ErrorInterpreter:
    """Pick the interpreter by the database an open connection talks to."""
    if connection is None:
        logger.info(
            "interpreter_for_connection: no connection, thus the appropriate interpreter "
            "can't be determined, returning the no-op one instead"
        )
        return _DEFAULT_INTERPRETER
    try:
        name = connection.dialect.name
    except Exception as exc:
        logger.error(
            "interpreter_for_connection: failed to access the connection's dialect, returning the no-op interpreter: %s",
            exc,
        )
        return _DEFAULT_INTERPRETER

    interpreter = _for_database(name)
    if interpreter is None:
        logger.debug("interpreter_for_connection(%s): no interpreter for this database exists", name)
        return _DEFAULT_INTERPRETER
    return interpreter
