from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlfixture.interpreter.base import ErrorExplanation


class SqlFixtureError(Exception):
    """Base exception for all sqlfixture errors."""

    pass


class ResourceNotFound(SqlFixtureError, FileNotFoundError):
    """Raised when a fixture, config or DDL file is missing from every search location."""

    def __init__(self, message: str, name: str, tried: list[str] | None = None) -> None:
        super().__init__(message)
        self.name = name
        self.tried = list(tried or [])

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownConfigKey(SqlFixtureError, LookupError):
    """Raised when a connection property key is not one of the supported keys."""

    pass


class UnsupportedOperation(SqlFixtureError):
    """Raised when an operation conflicts with the qualified-table-name contract."""

    pass


class ConnectionFailure(SqlFixtureError):
    """Raised when connecting to the test database fails and the cause is understood."""

    def __init__(self, explanation: ErrorExplanation, url: str) -> None:
        super().__init__(f"{explanation} Test DB URL: {url}")
        self.explanation = explanation
        self.url = url


class FixtureDocumentError(SqlFixtureError):
    """Raised when a fixture document cannot be parsed."""

    pass


class FixtureApplicationFailure(SqlFixtureError):
    """Raised when clean-insert, insert or clear fails partway."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        description: str | None = None,
        explanation: ErrorExplanation | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.description = description
        self.explanation = explanation
        self.url = url


class QueryFailure(SqlFixtureError):
    """Raised when a verification query cannot be executed."""

    pass


class SchemaBootstrapFailure(SqlFixtureError):
    """Raised when executing the DDL bootstrap file fails."""

    pass


class AssertionFailure(SqlFixtureError, AssertionError):
    """Raised when the verified data differs from the expected data."""

    pass


class ConfigurationMisuse(SqlFixtureError, ValueError):
    """Raised when a verification is set up wrongly, i.e. a bug in the test itself."""

    pass
