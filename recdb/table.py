"""
Single-table row store with an optional secondary index.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import (
    DuplicatePrimaryKeyError,
    InvalidIndexColumnError,
    PrimaryKeyImmutableError,
    RowNotFoundError,
    TypeMismatchError,
)
from .storage import read_table_file, write_table_file
from .types import Column, ColumnType, DEFAULT_SCHEMA, Row, SecondaryIndex


class Table:
    """
    Rows keyed by their integer primary key (column 0).

    At most one secondary index exists at a time, on a TEXT column other
    than the primary key. The index always mirrors ``_rows`` exactly.
    """

    def __init__(self, schema: Sequence[Column] = DEFAULT_SCHEMA):
        schema = tuple(schema)
        if not schema or schema[0].dtype != ColumnType.INT:
            raise TypeMismatchError("First column must be INT for primary key")
        self.schema = schema
        self._rows: Dict[int, Row] = {}
        self._index: Optional[SecondaryIndex] = None

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id) -> bool:
        return row_id in self._rows

    @property
    def indexed_column(self) -> Optional[int]:
        return self._index.column_index if self._index else None

    def insert(self, row: Sequence) -> None:
        """
        Insert a new row.

        Raises:
            TypeMismatchError: If the row does not match the schema
            DuplicatePrimaryKeyError: If a row with the same id exists
        """
        row = self._validate_row(row)
        row_id = row[0]
        if row_id in self._rows:
            raise DuplicatePrimaryKeyError(row_id)
        self._rows[row_id] = row
        self._index_add(row_id, row)

    def get(self, row_id: int) -> Row:
        try:
            return self._rows[row_id]
        except KeyError:
            raise RowNotFoundError(row_id) from None

    def update(self, row_id: int, new_row: Sequence) -> None:
        """
        Replace the row stored under ``row_id``.

        Raises:
            RowNotFoundError: If ``row_id`` is absent
            TypeMismatchError: If the row does not match the schema
            PrimaryKeyImmutableError: If ``new_row`` carries a different id
        """
        if row_id not in self._rows:
            raise RowNotFoundError(row_id)
        new_row = self._validate_row(new_row)
        if new_row[0] != row_id:
            raise PrimaryKeyImmutableError(row_id, new_row[0])
        old_row = self._rows[row_id]
        self._rows[row_id] = new_row
        if self._index is not None:
            column = self._index.column_index
            self._index.update(old_row[column], new_row[column], row_id)

    def remove(self, row_id: int) -> bool:
        """Delete a row; returns False if it did not exist."""
        if row_id not in self._rows:
            return False
        self._index_remove(row_id)
        del self._rows[row_id]
        return True

    def create_index(self, column_index: int) -> None:
        """Build a secondary index on a TEXT column, replacing any existing one."""
        if (not isinstance(column_index, int) or not 0 < column_index < len(self.schema)
                or self.schema[column_index].dtype != ColumnType.TEXT):
            raise InvalidIndexColumnError(f"Invalid column for indexing: {column_index}")
        index = SecondaryIndex(column_index)
        for row_id, row in self._rows.items():
            index.insert(row[column_index], row_id)
        self._index = index

    def select_by_index(self, value: str) -> List[Row]:
        """Rows whose indexed column equals ``value``, ascending by id."""
        if self._index is None:
            return []
        return [self._rows[row_id] for row_id in sorted(self._index.search(value))]

    def index_values(self) -> List[str]:
        """Values currently present in the secondary index."""
        return self._index.values() if self._index else []

    def list_all(self) -> List[Row]:
        """Every row, ascending by id."""
        return [self._rows[row_id] for row_id in sorted(self._rows)]

    def save(self, path: Path) -> None:
        write_table_file(path, self.schema, self._rows)

    def load(self, path: Path) -> bool:
        """
        Replace the table contents with the rows stored at ``path``.

        A missing file leaves the table untouched and returns False. On any
        error the current contents are kept as they were.
        """
        rows = read_table_file(path, self.schema)
        if rows is None:
            return False
        rows = {row_id: self._validate_row(row) for row_id, row in rows.items()}
        self._rows = rows
        if self._index is not None:
            self.create_index(self._index.column_index)
        return True

    def _validate_row(self, row: Sequence) -> Row:
        row = tuple(row)
        if len(row) != len(self.schema):
            raise TypeMismatchError(
                f"Row size {len(row)} does not match schema size {len(self.schema)}")
        for col, value in zip(self.schema, row):
            if not col.validate_value(value):
                raise TypeMismatchError(
                    f"Type mismatch in row: column '{col.name}' expects {col.dtype.name}, "
                    f"got {value!r}")
        return row

    def _index_add(self, row_id: int, row: Row) -> None:
        if self._index is not None:
            self._index.insert(row[self._index.column_index], row_id)

    def _index_remove(self, row_id: int) -> None:
        if self._index is not None:
            row = self._rows[row_id]
            self._index.delete(row[self._index.column_index], row_id)
