"""
Single-table record store with a tiny command language
"""

from .engine import DatabaseEngine
from .repl import DatabaseREPL
from .table import Table

__all__ = ['DatabaseEngine', 'DatabaseREPL', 'Table']
