"""
Row-by-row verification of query results.

A :class:`RowComparator` walks the rows of a result in order. Each
:meth:`RowComparator.assert_next` call consumes one row and compares it with
the expected values; :meth:`RowComparator.assert_row_count` checks the total.

Typical use inside a test::

    comparator = RowComparator.for_query(connections, "SELECT id, name FROM main.person ORDER BY id")
    comparator.assert_row_count(2)
    comparator.assert_next([1, "Ann"])
    comparator.assert_next_strings("2", "Bob")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sqlfixture.assertion.query_result import QueryResult
from sqlfixture.assertion.value_checker import ValueChecker
from sqlfixture.capabilities import SupportsConnect
from sqlfixture.dataset.models import Table
from sqlfixture.exceptions import AssertionFailure, ConfigurationMisuse, QueryFailure
from sqlfixture.interpreter import interpreter_for_connection

logger = logging.getLogger(__name__)


def _type_name(value: Any) -> str:
    kind = type(value)
    if kind.__module__ == "builtins":
        return kind.__qualname__
    return f"{kind.__module__}.{kind.__qualname__}"


class _CustomMessage:
    """Text prepended to failure messages, optionally dropped after one assertion."""

    def __init__(self) -> None:
        self.text: str | None = None
        self.one_time = False

    def set(self, text: str | None, one_time: bool) -> None:
        self.text = text
        self.one_time = one_time

    def done(self) -> None:
        if self.one_time:
            self.text = None
            self.one_time = False

    def decorated(self) -> str:
        return f"[{self.text}] " if self.text else ""


class RowComparator:
    """Sequential assertions over the rows of a :class:`QueryResult`."""

    def __init__(self, result: QueryResult | Table) -> None:
        if isinstance(result, Table):
            result = QueryResult.from_table(result)
        if not isinstance(result, QueryResult):
            raise ConfigurationMisuse(f"A RowComparator needs a QueryResult or a Table, got {type(result).__name__}")
        self._result = result
        self._message = _CustomMessage()
        self.current_row = -1

    @classmethod
    def for_query(cls, connections: SupportsConnect, sql: str, params: Mapping[str, Any] | None = None) -> RowComparator:
        """Run *sql* on the test database and return a comparator over its rows."""
        connection = connections.get_connection()
        try:
            result = QueryResult.from_result(connection.execute(text(sql), dict(params or {})))
        except SQLAlchemyError as exc:
            explanation = interpreter_for_connection(connection).explain_chain(exc)
            msg = f"The verification query failed: {sql}"
            if explanation is not None:
                msg = f"{msg} {explanation}"
            logger.error("for_query: %s", msg)
            raise QueryFailure(msg) from exc
        logger.debug("for_query: %d rows selected by %s", result.row_count, sql)
        return cls(result)

    @property
    def result(self) -> QueryResult:
        return self._result

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._result.columns

    @property
    def row_count(self) -> int:
        return self._result.row_count

    # ------------------------------------------------------------------
    # Custom failure messages
    # ------------------------------------------------------------------

    def with_error_message(self, text: str | None) -> RowComparator:
        """Prepend *text* to every failure message from now on; ``None`` removes it."""
        self._message.set(text, one_time=False)
        return self

    def with_one_time_error_message(self, text: str | None) -> RowComparator:
        """Prepend *text* to the failure message of the next assertion only."""
        self._message.set(text, one_time=True)
        return self

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def assert_row_count(self, expected: int) -> RowComparator:
        try:
            actual = self._result.row_count
            if actual != expected:
                raise AssertionFailure(
                    f"{self._message.decorated()}There shall be {expected} rows in total but there are "
                    f"{actual} (expected: {expected}, actual: {actual}). Check the query and the fixture."
                )
        finally:
            self._message.done()
        return self

    def assert_next(self, expected: Sequence[Any], *, msg: str | None = None, as_strings: bool = False) -> RowComparator:
        """
        Move to the next row and compare it with *expected*, one value per column.

        An expected value may be a :class:`ValueChecker`. With ``as_strings``
        every non-NULL actual value is converted with ``str()`` before comparing;
        otherwise expected and actual must be equal and of the same type.
        """
        try:
            prefix = self._message.decorated() + (f"{msg} " if msg else "")
            self._check_next_params(prefix, expected)
            self.current_row += 1
            row = self._result.rows[self.current_row]
            for position, column in enumerate(self._result.columns):
                actual = row[position]
                if as_strings and actual is not None:
                    actual = str(actual)
                location = f"{prefix}(row (starting from 0) {self.current_row}, column '{column}')"
                self._compare(location, expected[position], actual)
        finally:
            self._message.done()
        return self

    def assert_next_strings(self, *values: str | ValueChecker | None, msg: str | None = None) -> RowComparator:
        """Like :meth:`assert_next` comparing the string forms of the actual values."""
        return self.assert_next(list(values), msg=msg, as_strings=True)

    def _check_next_params(self, prefix: str, expected: Sequence[Any]) -> None:
        count = self._result.row_count
        if self.current_row + 1 >= count:
            raise ConfigurationMisuse(f"{prefix}There is no next row, the row count is {count}")
        if expected is None or isinstance(expected, str | bytes):
            raise ConfigurationMisuse(f"{prefix}The expected values must be a sequence with one value per column, got {expected!r}")
        columns = self._result.columns
        if len(expected) != len(columns):
            raise ConfigurationMisuse(
                f"{prefix}The result has {len(columns)} columns {list(columns)} but {len(expected)} expected values were given: {list(expected)!r}"
            )

    @staticmethod
    def _compare(location: str, expected: Any, actual: Any) -> None:
        if isinstance(expected, ValueChecker):
            try:
                expected.assert_acceptable(actual)
            except AssertionError as exc:
                raise AssertionFailure(f"{location} Failed ValueChecker test: {exc}") from exc
            except TypeError as exc:
                actual_type = "(the actual value is None)" if actual is None else _type_name(actual)
                raise ConfigurationMisuse(
                    "TypeError in a ValueChecker, likely the actual value is of a different type than the checker "
                    f"expects; its type is: {actual_type}; additional info: {location}; error: {exc}"
                ) from exc
            return

        same_type = type(expected) is type(actual)
        if same_type and expected == actual:
            return
        types = ""
        if not same_type:
            types = f" Expected type: {_type_name(expected)}, actual type: {_type_name(actual)}."
        raise AssertionFailure(f"{location} expected: <{expected!r}> but was: <{actual!r}>.{types}")

    # ------------------------------------------------------------------
    # Troubleshooting
    # ------------------------------------------------------------------

    def format_results(self) -> str:
        """Render every row of the result as a table."""
        return self._result.to_frame().to_string(index=False)

    def print_results(self) -> None:
        print(f"Select results ({self._result.row_count} rows):\n{self.format_results()}")
