from .duplicates import KEY_SEPARATOR, describe, find_duplicates, find_pk_duplicates
from .models import Column, FixtureDocument, FixtureStore, Table, compose
from .xml_document import dump_document, load_document

__all__ = [
    "Column",
    "Table",
    "FixtureDocument",
    "FixtureStore",
    "compose",
    "load_document",
    "dump_document",
    "describe",
    "find_duplicates",
    "find_pk_duplicates",
    "KEY_SEPARATOR",
]
