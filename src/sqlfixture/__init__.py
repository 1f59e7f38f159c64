from .assertion import (
    QueryResult,
    RowComparator,
    ValueChecker,
    any_value,
    between,
    checker,
    matches,
    not_null,
)
from .capabilities import SupportsConnect, SupportsFixtureReset, SupportsTableClear
from .config import ConfigResolver, ConnectionKey, ConnectionProperties, FixtureSettings
from .database import ConnectionManager, QualifiedName, SchemaBootstrapper, create_and_initialize
from .dataset import FixtureDocument, FixtureStore, Table, compose, load_document
from .exceptions import (
    AssertionFailure,
    ConfigurationMisuse,
    ConnectionFailure,
    FixtureApplicationFailure,
    FixtureDocumentError,
    QueryFailure,
    ResourceNotFound,
    SchemaBootstrapFailure,
    SqlFixtureError,
    UnknownConfigKey,
    UnsupportedOperation,
)
from .fixture_engine import DatabaseOperation, FixtureEngine, FixtureState
from .resource_locator import ResourceLocator

__version__ = "0.1.0"

__all__ = [
    "AssertionFailure",
    "ConfigResolver",
    "ConfigurationMisuse",
    "ConnectionFailure",
    "ConnectionKey",
    "ConnectionManager",
    "ConnectionProperties",
    "DatabaseOperation",
    "FixtureApplicationFailure",
    "FixtureDocument",
    "FixtureDocumentError",
    "FixtureEngine",
    "FixtureSettings",
    "FixtureState",
    "FixtureStore",
    "QualifiedName",
    "QueryFailure",
    "QueryResult",
    "ResourceLocator",
    "ResourceNotFound",
    "RowComparator",
    "SchemaBootstrapFailure",
    "SchemaBootstrapper",
    "SqlFixtureError",
    "SupportsConnect",
    "SupportsFixtureReset",
    "SupportsTableClear",
    "Table",
    "UnknownConfigKey",
    "UnsupportedOperation",
    "ValueChecker",
    "any_value",
    "between",
    "checker",
    "compose",
    "create_and_initialize",
    "load_document",
    "matches",
    "not_null",
]
