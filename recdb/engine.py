"""
Main database engine class.
"""

from typing import Any, Dict, Optional

from .errors import DatabaseError
from .executor import CommandExecutor, Session
from .log import get_logger
from .parser import CommandParser
from .registry import DatabaseRegistry
from .storage import Storage

logger = get_logger(__name__)


class DatabaseEngine:
    """Main database engine interface."""

    def __init__(self, data_dir: str = "data"):
        self.storage = Storage(data_dir)
        self.registry = DatabaseRegistry(self.storage)
        self.parser = CommandParser()
        self.executor = CommandExecutor(self.registry)
        self.session = Session()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def execute(self, line: str, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
        """
        Execute one command line.

        Args:
            line: Command text
            session: Selection state to run against; defaults to the engine's own

        Returns:
            Result dictionary, or None for a blank line

        Raises:
            DatabaseError: If the command is malformed or cannot be applied
        """
        if session is None:
            session = self.session
        table = self.executor.selected_table(session)
        command = self.parser.parse(line, table.schema if table is not None else None)
        if command is None:
            return None
        return self.executor.execute(command, session)

    def run_line(self, line: str, session: Optional[Session] = None) -> Optional[Dict[str, Any]]:
        """Like ``execute`` but reports failures as an ``ERROR`` result."""
        try:
            return self.execute(line, session)
        except DatabaseError as e:
            logger.debug("Command failed: %r: %s", line, e)
            return {'status': 'ERROR', 'error': type(e).__name__, 'message': str(e)}

    @property
    def current_database(self) -> Optional[str]:
        self.executor.selected_table(self.session)
        return self.session.name

    def list_databases(self) -> list:
        """List all registered databases."""
        return self.registry.list()

    def close(self):
        """Save every registered database to disk."""
        self.registry.flush_all()
