"""In-memory fixture model: tables of named columns and positional rows.

Hierarchy:
    FixtureStore (what the engine applies)
    -> FixtureDocument (one loaded file, or one programmatic set)
    -> Table (ordered columns + rows)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from sqlfixture.exceptions import ConfigurationMisuse


@dataclass(frozen=True)
class Column:
    name: str
    data_type: str | None = None  # declared type, None when the document doesn't say


class Table:
    """A named table with an ordered column list and rows of matching arity.

    Column lookups ignore case so that a fixture written as ``ID`` matches a
    live column ``id``.
    """

    def __init__(self, name: str, columns: Sequence[Column | str], rows: Iterable[Sequence[Any]] = ()) -> None:
        if not name:
            raise ConfigurationMisuse("A table name may not be empty")
        self.name = name
        self._columns = tuple(Column(c) if isinstance(c, str) else c for c in columns)
        self._index: dict[str, int] = {}
        for position, column in enumerate(self._columns):
            key = column.name.lower()
            if key in self._index:
                raise ConfigurationMisuse(f"Table '{name}' declares the column '{column.name}' twice")
            self._index[key] = position
        self._rows: list[tuple[Any, ...]] = []
        for row in rows:
            self.add_row(row)

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self._columns]

    @property
    def rows(self) -> tuple[tuple[Any, ...], ...]:
        return tuple(self._rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def add_row(self, values: Sequence[Any]) -> None:
        """Append a row; it must have exactly one value per column."""
        if len(values) != len(self._columns):
            raise ConfigurationMisuse(
                f"Table '{self.name}' has {len(self._columns)} columns {self.column_names} "
                f"but the row {list(values)!r} has {len(values)} values"
            )
        self._rows.append(tuple(values))

    def has_column(self, column: str) -> bool:
        return column.lower() in self._index

    def column_index(self, column: str) -> int:
        try:
            return self._index[column.lower()]
        except KeyError:
            raise ConfigurationMisuse(f"Table '{self.name}' has no column '{column}'; its columns are {self.column_names}") from None

    def get_value(self, row: int, column: str) -> Any:
        return self._rows[row][self.column_index(column)]

    # ------------------------------------------------------------------
    # pandas interop
    # ------------------------------------------------------------------

    @classmethod
    def from_frame(cls, name: str, frame: pd.DataFrame) -> Table:
        """Build a table from a DataFrame; missing values (NaN, NaT, None) become NULL."""
        columns = [Column(str(column), str(dtype)) for column, dtype in frame.dtypes.items()]
        values = frame.astype(object).where(pd.notna(frame), None)
        return cls(name, columns, values.itertuples(index=False, name=None))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self._rows), columns=self.column_names)

    def __repr__(self) -> str:
        return f"Table(name={self.name!r}, columns={self.column_names!r}, rows={self.row_count})"


@dataclass(frozen=True)
class FixtureDocument:
    """Ordered tables of one fixture; the order is the insert order."""

    tables: tuple[Table, ...] = ()
    source: str | None = None

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def get_table(self, name: str) -> Table:
        for table in self.tables:
            if table.name.lower() == name.lower():
                return table
        raise ConfigurationMisuse(f"The fixture {self.source or ''} has no table '{name}'; its tables are {self.table_names}")


@dataclass(frozen=True)
class FixtureStore:
    """One or more documents applied together.

    The tables are the concatenation of the documents' tables in document
    order. Tables with the same name are *not* merged.
    """

    documents: tuple[FixtureDocument, ...] = field(default_factory=tuple)

    @property
    def tables(self) -> tuple[Table, ...]:
        return tuple(table for document in self.documents for table in document.tables)

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)


def compose(*parts: FixtureDocument | FixtureStore | Table) -> FixtureStore:
    """Concatenate documents (or stores, or loose tables) into one store, preserving order."""
    documents: list[FixtureDocument] = []
    for part in parts:
        if isinstance(part, FixtureStore):
            documents.extend(part.documents)
        elif isinstance(part, FixtureDocument):
            documents.append(part)
        elif isinstance(part, Table):
            documents.append(FixtureDocument(tables=(part,)))
        else:
            raise ConfigurationMisuse(f"Can't compose a fixture from {type(part).__name__}: {part!r}")
    return FixtureStore(documents=tuple(documents))
