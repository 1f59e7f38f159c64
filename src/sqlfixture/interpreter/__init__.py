from .base import (
    ErrorExplanation,
    ErrorInterpreter,
    NoOpInterpreter,
    TableInterpreter,
    state_code_of,
)
from .factory import default_interpreter, interpreter_for_connection, interpreter_for_driver
from .postgresql import PostgresqlInterpreter
from .sqlite import SqliteInterpreter

__all__ = [
    "ErrorExplanation",
    "ErrorInterpreter",
    "NoOpInterpreter",
    "TableInterpreter",
    "SqliteInterpreter",
    "PostgresqlInterpreter",
    "state_code_of",
    "default_interpreter",
    "interpreter_for_connection",
    "interpreter_for_driver",
]
