"""Explain low-level database errors in human terms.

Drivers report the kind of a failure as a short *state code* (``SQLITE_BUSY``,
SQLSTATE ``55P03``, ...). An :class:`ErrorInterpreter` maps the codes of one
database family to an explanation and a remediation hint. Unknown codes are
never an error: the caller gets ``None`` and falls back to the raw exception.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

# sqlstate: psycopg 3, pgcode: psycopg2, sqlite_errorname: sqlite3 (Python 3.11+)
_STATE_CODE_ATTRIBUTES = ("sqlstate", "pgcode", "sqlite_errorname")


class ErrorExplanation(BaseModel):
    """Human readable diagnosis of one state code."""

    model_config = ConfigDict(frozen=True)

    state_code: str
    explanation: str
    remediation: str = ""

    def __str__(self) -> str:
        return f"{self.explanation} {self.remediation}".strip()


def state_code_of(error: BaseException) -> str | None:
    """Return the driver state code carried by *error*, if any.

    A SQLAlchemy ``DBAPIError`` is looked through to the driver exception it wraps.
    """
    if isinstance(error, DBAPIError) and error.orig is not None:
        error = error.orig
    for attribute in _STATE_CODE_ATTRIBUTES:
        code = getattr(error, attribute, None)
        if isinstance(code, str) and code:
            return code
    return None


class ErrorInterpreter(ABC):
    """Base class of the per-database interpreters."""

    @abstractmethod
    def explain_code(self, state_code: str) -> ErrorExplanation | None:
        """Explain a state code; ``None`` when it isn't known."""

    def explain(self, error: BaseException) -> ErrorExplanation | None:
        """Explain a single low-level error by its state code."""
        if error is None:
            raise ValueError("The error to explain may not be None")
        code = state_code_of(error)
        if code is None:
            return None
        explanation = self.explain_code(code)
        logger.debug("explain(state_code=%s) - explanation: %s", code, explanation)
        return explanation

    def explain_chain(self, error: BaseException | None) -> ErrorExplanation | None:
        """Explain the first error in the cause chain that carries a state code.

        The chain is *error*, the driver exception wrapped by a ``DBAPIError``,
        then ``__cause__`` and ``__context__``. The walk stops at the first
        error with a state code, even if that code has no explanation.
        """
        seen: set[int] = set()
        pending: list[BaseException] = [error] if error is not None else []
        while pending:
            current = pending.pop(0)
            if id(current) in seen:
                continue
            seen.add(id(current))

            if state_code_of(current) is not None:
                return self.explain(current)

            if isinstance(current, DBAPIError) and current.orig is not None:
                pending.append(current.orig)
            if current.__cause__ is not None:
                pending.append(current.__cause__)
            if current.__context__ is not None:
                pending.append(current.__context__)
        return None


class TableInterpreter(ErrorInterpreter):
    """Interpreter backed by a fixed ``{state code: explanation}`` table."""

    database: str = ""
    explanations: Mapping[str, ErrorExplanation] = {}

    def explain_code(self, state_code: str) -> ErrorExplanation | None:
        return self.explanations.get(state_code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(database={self.database!r})"


class NoOpInterpreter(ErrorInterpreter):
    """Explains nothing; used until the database family is known."""

    def explain_code(self, state_code: str) -> ErrorExplanation | None:
        return None

    def __repr__(self) -> str:
        return "NoOpInterpreter()"
