"""Tests for state-code extraction, the per-database interpreters and their selection."""

import pytest
from sqlalchemy.exc import OperationalError

from sqlfixture.interpreter import (
    ErrorExplanation,
    NoOpInterpreter,
    PostgresqlInterpreter,
    SqliteInterpreter,
    default_interpreter,
    interpreter_for_connection,
    interpreter_for_driver,
    state_code_of,
)


class FakeDriverError(Exception):
    """Stands in for a DB-API exception carrying a state code."""

    def __init__(self, message: str, **codes: str) -> None:
        super().__init__(message)
        for attribute, code in codes.items():
            setattr(self, attribute, code)


def _wrapped(orig: Exception) -> OperationalError:
    return OperationalError("DELETE FROM main.person", {}, orig)


class TestStateCode:
    def test_sqlite_errorname(self):
        assert state_code_of(FakeDriverError("busy", sqlite_errorname="SQLITE_BUSY")) == "SQLITE_BUSY"

    def test_psycopg_attributes(self):
        assert state_code_of(FakeDriverError("locked", sqlstate="55P03")) == "55P03"
        assert state_code_of(FakeDriverError("locked", pgcode="55P03")) == "55P03"

    def test_looks_through_dbapi_wrapper(self):
        assert state_code_of(_wrapped(FakeDriverError("busy", sqlite_errorname="SQLITE_BUSY"))) == "SQLITE_BUSY"

    def test_no_code(self):
        assert state_code_of(ValueError("plain")) is None


class TestSqliteInterpreter:
    def test_unknown_code_is_not_explained(self):
        assert SqliteInterpreter().explain_code("SQLITE_NOMEM") is None

    def test_lock_timeout_mentions_lock_and_commit(self):
        explanation = SqliteInterpreter().explain(FakeDriverError("database is locked", sqlite_errorname="SQLITE_BUSY"))
        assert explanation is not None
        assert explanation.state_code == "SQLITE_BUSY"
        assert "lock" in str(explanation)
        assert "commit" in str(explanation)

    def test_missing_database(self):
        explanation = SqliteInterpreter().explain_code("SQLITE_CANTOPEN")
        assert explanation is not None
        assert "sqlfixture-create" in explanation.remediation

    def test_explain_none_rejected(self):
        with pytest.raises(ValueError):
            SqliteInterpreter().explain(None)  # type: ignore[arg-type]

    def test_error_without_code(self):
        assert SqliteInterpreter().explain(RuntimeError("boom")) is None


class TestPostgresqlInterpreter:
    def test_lock_not_available(self):
        explanation = PostgresqlInterpreter().explain(FakeDriverError("canceling statement", sqlstate="55P03"))
        assert explanation is not None
        assert "locked" in explanation.explanation
        assert "commit" in explanation.explanation

    def test_unknown_sqlstate(self):
        assert PostgresqlInterpreter().explain(FakeDriverError("unique violation", sqlstate="23505")) is None


class TestExplainChain:
    def test_finds_code_in_wrapped_driver_error(self):
        error = _wrapped(FakeDriverError("database is locked", sqlite_errorname="SQLITE_BUSY"))
        explanation = SqliteInterpreter().explain_chain(error)
        assert explanation is not None
        assert explanation.state_code == "SQLITE_BUSY"

    def test_follows_cause(self):
        try:
            try:
                raise FakeDriverError("database is locked", sqlite_errorname="SQLITE_BUSY")
            except FakeDriverError as driver_error:
                raise RuntimeError("apply failed") from driver_error
        except RuntimeError as error:
            explanation = SqliteInterpreter().explain_chain(error)
        assert explanation is not None
        assert explanation.state_code == "SQLITE_BUSY"

    def test_stops_at_first_code_even_if_unexplained(self):
        inner = FakeDriverError("busy", sqlite_errorname="SQLITE_BUSY")
        outer = FakeDriverError("out of memory", sqlite_errorname="SQLITE_NOMEM")
        outer.__cause__ = inner
        assert SqliteInterpreter().explain_chain(outer) is None

    def test_cyclic_chain_terminates(self):
        first = RuntimeError("first")
        second = RuntimeError("second")
        first.__context__ = second
        second.__context__ = first
        assert SqliteInterpreter().explain_chain(first) is None

    def test_none(self):
        assert SqliteInterpreter().explain_chain(None) is None

    def test_no_op_explains_nothing(self):
        error = _wrapped(FakeDriverError("database is locked", sqlite_errorname="SQLITE_BUSY"))
        assert NoOpInterpreter().explain_chain(error) is None


class TestExplanation:
    def test_str_joins_explanation_and_remediation(self):
        explanation = ErrorExplanation(state_code="X", explanation="It broke.", remediation="Fix it.")
        assert str(explanation) == "It broke. Fix it."

    def test_str_without_remediation(self):
        assert str(ErrorExplanation(state_code="X", explanation="It broke.")) == "It broke."


class _BrokenConnection:
    @property
    def dialect(self):
        raise RuntimeError("connection closed")


class TestFactory:
    def test_default_is_shared_no_op(self):
        assert default_interpreter() is default_interpreter()
        assert isinstance(default_interpreter(), NoOpInterpreter)

    @pytest.mark.parametrize(
        ("driver", "expected"),
        [
            ("sqlite+pysqlite", SqliteInterpreter),
            ("sqlite", SqliteInterpreter),
            ("postgresql+psycopg", PostgresqlInterpreter),
            ("postgresql", PostgresqlInterpreter),
        ],
    )
    def test_known_drivers(self, driver, expected):
        assert isinstance(interpreter_for_driver(driver), expected)

    def test_unknown_driver_gives_default(self):
        assert interpreter_for_driver("mysql+pymysql") is default_interpreter()
        assert interpreter_for_driver(None) is default_interpreter()
        assert interpreter_for_driver("") is default_interpreter()

    def test_for_live_connection(self, connections):
        assert isinstance(interpreter_for_connection(connections.get_connection()), SqliteInterpreter)

    def test_for_missing_connection(self):
        assert interpreter_for_connection(None) is default_interpreter()

    def test_failing_inspection_gives_default(self):
        assert interpreter_for_connection(_BrokenConnection()) is default_interpreter()  # type: ignore[arg-type]
