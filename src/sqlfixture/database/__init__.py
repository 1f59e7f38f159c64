from .connection_manager import ConnectionManager, QualifiedName
from .data_source import DataSourceAdapter
from .schema_bootstrap import (
    SchemaBootstrapper,
    create_and_initialize,
    create_database_url,
    split_statements,
)

__all__ = [
    "ConnectionManager",
    "QualifiedName",
    "DataSourceAdapter",
    "SchemaBootstrapper",
    "create_and_initialize",
    "create_database_url",
    "split_statements",
]
