"""
Core data types and constants for the record store.
"""

from enum import Enum
from typing import Any, Dict, List, Set, Tuple, Union
from dataclasses import dataclass

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1

Value = Union[int, str]
Row = Tuple[Value, ...]


class ColumnType(Enum):
    """Supported column types. The value is the tag written to disk."""
    INT = 0
    TEXT = 1


@dataclass(frozen=True)
class Column:
    """Represents a table column definition."""
    name: str
    dtype: ColumnType

    def validate_value(self, value: Any) -> bool:
        """Validate a value against the column's data type."""
        if self.dtype == ColumnType.INT:
            # bool is an int subclass but never a valid INT value
            return (isinstance(value, int) and not isinstance(value, bool)
                    and INT32_MIN <= value <= INT32_MAX)
        elif self.dtype == ColumnType.TEXT:
            return isinstance(value, str)
        return False


# Every database holds exactly one table with this shape.
DEFAULT_SCHEMA = (
    Column("id", ColumnType.INT),
    Column("name", ColumnType.TEXT),
)


class SecondaryIndex:
    """Hash-based equality index over one text column."""

    def __init__(self, column_index: int):
        self.column_index = column_index
        self._index: Dict[str, Set[int]] = {}  # value -> set of row ids

    def insert(self, value: str, row_id: int):
        """Insert a value into the index."""
        if value not in self._index:
            self._index[value] = set()
        self._index[value].add(row_id)

    def delete(self, value: str, row_id: int):
        """Remove a value from the index, dropping the bucket once empty."""
        if value in self._index:
            self._index[value].discard(row_id)
            if not self._index[value]:
                del self._index[value]

    def update(self, old_value: str, new_value: str, row_id: int):
        """Update index entry."""
        self.delete(old_value, row_id)
        self.insert(new_value, row_id)

    def search(self, value: str) -> Set[int]:
        """Find row ids for a given value."""
        return set(self._index.get(value, ()))

    def values(self) -> List[str]:
        return list(self._index)


def format_row(row: Row) -> str:
    return ", ".join(str(value) for value in row)


def schema_description(schema: Tuple[Column, ...]) -> List[Dict[str, Any]]:
    return [{'name': col.name, 'type': col.dtype.name} for col in schema]
