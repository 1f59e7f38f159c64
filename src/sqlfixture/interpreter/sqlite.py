"""Interpreter for SQLite, keyed by ``sqlite3.Error.sqlite_errorname``.

See https://www.sqlite.org/rescode.html for the meaning of the codes.
"""

from __future__ import annotations

from sqlfixture.interpreter.base import ErrorExplanation, TableInterpreter

_LOCK_TIMEOUT = (
    "The table is locked, perhaps your test code has not cleaned correctly the DB resources "
    "that it used (such as doing proper commit/rollback of a transaction it started)."
)
_LOCK_TIMEOUT_HINT = (
    "Commit or roll back every connection the test opened and close it; if another process "
    "uses the database legitimately, raise SQLFIXTURE_LOCK_TIMEOUT."
)

_LOCK_TABLE = (
    "A table is locked by another statement of the same connection, typically a SELECT "
    "whose result hasn't been fully read or closed yet."
)
_LOCK_TABLE_HINT = "Fetch or close pending results before modifying the table."

_IN_USE_ELSEWHERE = (
    "Failed to open the test database, it seems that it is in use by another process or "
    "that a previous process wasn't shut down correctly and left its journal behind."
)
_IN_USE_ELSEWHERE_HINT = (
    "Make sure that no other process accesses the database and remove the leftover "
    "-journal, -wal and -shm files from the database folder."
)

_NOT_CREATED = "Failed to connect to the test database, it seems it hasn't been created yet."
_NOT_CREATED_HINT = (
    "Check the detailed failure and the database URL. You can create the database by "
    "running `sqlfixture-create` from the folder you execute the tests from."
)


def _entries(codes: tuple[str, ...], explanation: str, remediation: str) -> dict[str, ErrorExplanation]:
    return {code: ErrorExplanation(state_code=code, explanation=explanation, remediation=remediation) for code in codes}


SQLITE_EXPLANATIONS: dict[str, ErrorExplanation] = {
    **_entries(("SQLITE_BUSY", "SQLITE_BUSY_TIMEOUT"), _LOCK_TIMEOUT, _LOCK_TIMEOUT_HINT),
    **_entries(("SQLITE_LOCKED", "SQLITE_LOCKED_SHAREDCACHE"), _LOCK_TABLE, _LOCK_TABLE_HINT),
    **_entries(
        ("SQLITE_BUSY_RECOVERY", "SQLITE_BUSY_SNAPSHOT", "SQLITE_READONLY_ROLLBACK"),
        _IN_USE_ELSEWHERE,
        _IN_USE_ELSEWHERE_HINT,
    ),
    **_entries(("SQLITE_CANTOPEN",), _NOT_CREATED, _NOT_CREATED_HINT),
}


class SqliteInterpreter(TableInterpreter):
    database = "sqlite"
    explanations = SQLITE_EXPLANATIONS
