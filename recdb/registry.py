"""
Directory of named databases, each holding one table.
"""

from pathlib import Path
from typing import Dict, List

from .errors import (
    DatabaseExistsError,
    DatabaseNotFoundError,
    InvalidDatabaseNameError,
    PersistenceError,
)
from .log import get_logger
from .storage import Storage
from .table import Table
from .types import DEFAULT_SCHEMA

logger = get_logger(__name__)

# Column carrying the secondary index of every database table.
INDEXED_COLUMN = 1


def validate_name(name: str) -> str:
    """Accept only names that are a single plain file name component."""
    if (not name or name.startswith(".") or Path(name).name != name
            or "\\" in name or "\x00" in name):
        raise InvalidDatabaseNameError(name)
    return name


class DatabaseRegistry:
    """Maps database names to live tables and persists them through ``Storage``."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self._tables: Dict[str, Table] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def create(self, name: str) -> Table:
        """
        Register a new database, loading its file from disk if one exists.

        Raises:
            InvalidDatabaseNameError: If ``name`` cannot be used as a file name
            DatabaseExistsError: If ``name`` is already registered
            PersistenceError: If the existing file cannot be loaded
        """
        validate_name(name)
        if name in self._tables:
            raise DatabaseExistsError(name)
        table = Table(DEFAULT_SCHEMA)
        loaded = self.storage.load_table(name, table)
        table.create_index(INDEXED_COLUMN)
        self._tables[name] = table
        logger.info("Created database '%s'%s", name, " from existing file" if loaded else "")
        return table

    def use(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise DatabaseNotFoundError(name) from None

    def drop(self, name: str) -> None:
        """Forget the in-memory table. Its file on disk is kept."""
        if name not in self._tables:
            raise DatabaseNotFoundError(name)
        del self._tables[name]
        logger.info("Dropped database '%s'", name)

    def list(self) -> List[str]:
        return sorted(self._tables)

    def flush(self, name: str) -> None:
        self.storage.save_table(name, self.use(name))

    def flush_all(self) -> List[str]:
        """
        Save every registered table.

        Every table is attempted even if an earlier one fails; the first
        failure is re-raised afterwards.
        """
        saved = []
        first_error = None
        for name, table in self._tables.items():
            try:
                self.storage.save_table(name, table)
                saved.append(name)
            except PersistenceError as e:
                logger.error("Failed to save database '%s': %s", name, e)
                if first_error is None:
                    first_error = e
        logger.info("Flushed %d database(s)", len(saved))
        if first_error is not None:
            raise first_error
        return saved
