"""
Command executor that applies parsed commands to the selected database.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import NoDatabaseSelectedError
from .parser import CommandType
from .registry import DatabaseRegistry
from .table import Table


@dataclass
class Session:
    """
    The database currently selected by one client.

    Only the name is kept; it is resolved against the registry on every
    command, so a database dropped elsewhere stops being usable here.
    """
    name: Optional[str] = None

    def select(self, name: str):
        self.name = name

    def clear(self):
        self.name = None


class CommandExecutor:
    """Executes parsed commands against the registry."""

    def __init__(self, registry: DatabaseRegistry):
        self.registry = registry

    def selected_table(self, session: Session) -> Optional[Table]:
        """The table selected by ``session``, clearing a selection that was dropped."""
        if session.name is None:
            return None
        if session.name not in self.registry:
            session.clear()
            return None
        return self.registry.use(session.name)

    def require_table(self, session: Session) -> Table:
        table = self.selected_table(session)
        if table is None:
            raise NoDatabaseSelectedError()
        return table

    def execute(self, command: Dict[str, Any], session: Session) -> Dict[str, Any]:
        """Execute a parsed command."""
        command_type = command['type']

        if command_type == CommandType.CREATE_DATABASE:
            return self._execute_create(command, session)
        elif command_type == CommandType.USE:
            return self._execute_use(command, session)
        elif command_type == CommandType.SHOW_DATABASES:
            return self._execute_show(command, session)
        elif command_type == CommandType.DROP_DATABASE:
            return self._execute_drop(command, session)
        elif command_type == CommandType.INSERT:
            return self._execute_insert(command, session)
        elif command_type == CommandType.SELECT:
            return self._execute_select(command, session)
        elif command_type == CommandType.SELECT_ALL:
            return self._execute_select_all(command, session)
        elif command_type == CommandType.UPDATE:
            return self._execute_update(command, session)
        elif command_type == CommandType.DELETE:
            return self._execute_delete(command, session)
        else:
            raise ValueError(f"Unsupported command type: {command_type}")

    def _execute_create(self, command, session: Session) -> Dict[str, Any]:
        name = command['database']
        self.registry.create(name)
        session.select(name)
        return {'status': 'OK', 'message': f"Database '{name}' created and selected"}

    def _execute_use(self, command, session: Session) -> Dict[str, Any]:
        name = command['database']
        self.registry.use(name)
        session.select(name)
        return {'status': 'OK', 'message': f"Switched to database '{name}'"}

    def _execute_show(self, command, session: Session) -> Dict[str, Any]:
        self.selected_table(session)
        return {
            'status': 'OK',
            'databases': self.registry.list(),
            'current': session.name,
        }

    def _execute_drop(self, command, session: Session) -> Dict[str, Any]:
        name = command['database']
        self.registry.drop(name)
        if name == session.name:
            session.clear()
            return {'status': 'OK', 'message': f"Database '{name}' dropped. No database selected."}
        return {'status': 'OK', 'message': f"Database '{name}' dropped"}

    def _execute_insert(self, command, session: Session) -> Dict[str, Any]:
        table = self.require_table(session)
        table.insert(command['values'])
        return {'status': 'OK', 'message': f"Inserted successfully into '{session.name}'"}

    def _execute_select(self, command, session: Session) -> Dict[str, Any]:
        table = self.require_table(session)
        row = table.get(command['id'])
        return {'status': 'OK', 'columns': [col.name for col in table.schema], 'rows': [row]}

    def _execute_select_all(self, command, session: Session) -> Dict[str, Any]:
        table = self.require_table(session)
        return {
            'status': 'OK',
            'columns': [col.name for col in table.schema],
            'rows': table.list_all(),
        }

    def _execute_update(self, command, session: Session) -> Dict[str, Any]:
        table = self.require_table(session)
        row_id = command['id']
        row = list(table.get(row_id))
        row[command['column']] = command['value']
        table.update(row_id, row)
        return {'status': 'OK', 'message': f"Updated successfully in '{session.name}'"}

    def _execute_delete(self, command, session: Session) -> Dict[str, Any]:
        table = self.require_table(session)
        row_id = command['id']
        table.get(row_id)
        table.remove(row_id)
        return {'status': 'OK', 'message': f"Deleted successfully from '{session.name}'"}
