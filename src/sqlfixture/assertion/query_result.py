"""Rows to verify, detached from the connection they came from."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd
from sqlalchemy.engine import Result

from sqlfixture.dataset.models import Table
from sqlfixture.exceptions import ConfigurationMisuse


class QueryResult:
    """Ordered rows with named columns; column lookups ignore case."""

    def __init__(self, columns: Sequence[str], rows: Iterable[Sequence[Any]] = ()) -> None:
        self._columns = tuple(columns)
        self._index = {name.lower(): position for position, name in enumerate(self._columns)}
        self._rows: list[tuple[Any, ...]] = []
        for row in rows:
            if len(row) != len(self._columns):
                raise ConfigurationMisuse(f"The row {list(row)!r} doesn't have one value per column of {list(self._columns)}")
            self._rows.append(tuple(row))

    @classmethod
    def from_result(cls, result: Result[Any]) -> QueryResult:
        """Read a SQLAlchemy result completely."""
        columns = list(result.keys())
        return cls(columns, [tuple(row) for row in result])

    @classmethod
    def from_table(cls, table: Table) -> QueryResult:
        return cls(table.column_names, table.rows)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def rows(self) -> tuple[tuple[Any, ...], ...]:
        return tuple(self._rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def get_value(self, row: int, column: str) -> Any:
        try:
            position = self._index[column.lower()]
        except KeyError:
            raise ConfigurationMisuse(f"The result has no column '{column}'; its columns are {list(self._columns)}") from None
        return self._rows[row][position]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=list(self._columns))

    def __repr__(self) -> str:
        return f"QueryResult(columns={list(self._columns)!r}, rows={self.row_count})"
