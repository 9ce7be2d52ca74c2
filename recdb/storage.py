"""
File-based storage for tables.

Binary layout of a table file, little-endian::

    column_count : u64
    column_count x { name_len : i32, name : bytes, type_tag : i32 }
    row_count    : u64
    row_count    x { id : i32, one field per column:
                     INT  -> value : i32
                     TEXT -> { len : i32, bytes } }
"""

import os
import struct
from pathlib import Path
from typing import Dict, List, Sequence

from .errors import CorruptFileError, PersistenceError, SchemaMismatchError
from .log import get_logger
from .types import Column, ColumnType, Row

logger = get_logger(__name__)

FILE_SUFFIX = ".dat"

_SIZE = struct.Struct("<Q")
_INT32 = struct.Struct("<i")


def encode_table(schema: Sequence[Column], rows: Dict[int, Row]) -> bytes:
    """Serialize a schema and its rows to the table file layout."""
    parts = [_SIZE.pack(len(schema))]
    for col in schema:
        name = col.name.encode("utf-8")
        parts.append(_INT32.pack(len(name)))
        parts.append(name)
        parts.append(_INT32.pack(col.dtype.value))

    parts.append(_SIZE.pack(len(rows)))
    for row_id, row in rows.items():
        parts.append(_INT32.pack(row_id))
        for col, value in zip(schema, row):
            if col.dtype == ColumnType.INT:
                parts.append(_INT32.pack(value))
            else:
                data = value.encode("utf-8")
                parts.append(_INT32.pack(len(data)))
                parts.append(data)
    return b"".join(parts)


class _Reader:
    """Sequential reader over a byte buffer that fails on truncation."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def _unpack(self, fmt: struct.Struct):
        if self.offset + fmt.size > len(self.data):
            raise CorruptFileError(f"Unexpected end of file at byte {self.offset}")
        (value,) = fmt.unpack_from(self.data, self.offset)
        self.offset += fmt.size
        return value

    def size(self) -> int:
        return self._unpack(_SIZE)

    def int32(self) -> int:
        return self._unpack(_INT32)

    def text(self) -> str:
        length = self.int32()
        if length < 0 or self.offset + length > len(self.data):
            raise CorruptFileError(f"Invalid string length {length} at byte {self.offset}")
        raw = self.data[self.offset:self.offset + length]
        self.offset += length
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptFileError(f"Invalid UTF-8 text: {e}") from e

    def at_end(self) -> bool:
        return self.offset == len(self.data)


def decode_table(schema: Sequence[Column], data: bytes) -> Dict[int, Row]:
    """
    Parse a table file and return its rows keyed by id.

    The stored schema must agree exactly with ``schema``; it is verified,
    never adopted.

    Raises:
        SchemaMismatchError: If the stored column count, names or types differ
        CorruptFileError: If the file is truncated or malformed
    """
    reader = _Reader(data)

    column_count = reader.size()
    if column_count != len(schema):
        raise SchemaMismatchError(
            f"Schema mismatch: file has {column_count} columns, expected {len(schema)}")
    for position, col in enumerate(schema):
        name = reader.text()
        tag = reader.int32()
        if name != col.name or tag != col.dtype.value:
            raise SchemaMismatchError(
                f"Schema mismatch at column {position}: "
                f"file has ({name!r}, tag {tag}), expected ({col.name!r}, tag {col.dtype.value})")

    rows = {}
    row_count = reader.size()
    for _ in range(row_count):
        row_id = reader.int32()
        values: List = []
        for col in schema:
            if col.dtype == ColumnType.INT:
                values.append(reader.int32())
            else:
                values.append(reader.text())
        if values[0] != row_id:
            raise CorruptFileError(f"Row key {row_id} does not match stored id {values[0]}")
        rows[row_id] = tuple(values)

    if not reader.at_end():
        raise CorruptFileError(f"Trailing data after {row_count} rows")
    return rows


def write_table_file(path: Path, schema: Sequence[Column], rows: Dict[int, Row]) -> None:
    """Write the whole table to ``path``, replacing it in one rename."""
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, 'wb') as f:
            f.write(encode_table(schema, rows))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise PersistenceError(f"Cannot write '{path}': {e}") from e


def read_table_file(path: Path, schema: Sequence[Column]):
    """Read rows from ``path``; returns None if the file does not exist."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise PersistenceError(f"Cannot read '{path}': {e}") from e
    return decode_table(schema, data)


class Storage:
    """Handles disk persistence for databases, one file per database."""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def table_path(self, db_name: str) -> Path:
        return self.data_dir / f"{db_name}{FILE_SUFFIX}"

    def exists(self, db_name: str) -> bool:
        """Check if a database file exists on disk."""
        return self.table_path(db_name).exists()

    def list_databases(self) -> List[str]:
        """List all databases with a file on disk."""
        return sorted(file.stem for file in self.data_dir.glob(f"*{FILE_SUFFIX}"))

    def save_table(self, db_name: str, table) -> None:
        path = self.table_path(db_name)
        table.save(path)
        logger.debug("Saved %d rows of '%s' to %s", len(table), db_name, path)

    def load_table(self, db_name: str, table) -> bool:
        """Load a database file into ``table``; returns False if there is none."""
        path = self.table_path(db_name)
        try:
            loaded = table.load(path)
        except PersistenceError as e:
            logger.error("Failed to load '%s' from %s: %s", db_name, path, e)
            raise
        if loaded:
            logger.info("Loaded %d rows of '%s' from %s", len(table), db_name, path)
        return loaded
