"""
Exception hierarchy for the record store.
"""


class DatabaseError(Exception):
    """Base class for every error raised while executing a command."""


# Command interpreter

class CommandError(DatabaseError):
    """A command line could not be interpreted."""


class CommandSyntaxError(CommandError):
    """Token sequence does not match the command's grammar."""

    def __init__(self, position: int, message: str = None):
        self.position = position
        super().__init__(message or f"Syntax error at token {position}")


class UnknownCommandError(CommandError):
    def __init__(self, keyword: str):
        self.keyword = keyword
        super().__init__(f"Unknown command: {keyword}")


# Storage engine

class StorageEngineError(DatabaseError):
    """A table operation violated one of the table's constraints."""


class DuplicatePrimaryKeyError(StorageEngineError):
    def __init__(self, row_id: int):
        self.row_id = row_id
        super().__init__(f"Duplicate ID: {row_id} already exists")


class RowNotFoundError(StorageEngineError):
    def __init__(self, row_id: int):
        self.row_id = row_id
        super().__init__(f"ID {row_id} not found")


class TypeMismatchError(StorageEngineError):
    pass


class PrimaryKeyImmutableError(StorageEngineError):
    def __init__(self, row_id: int, new_id):
        self.row_id = row_id
        self.new_id = new_id
        super().__init__(f"Cannot change primary key {row_id} to {new_id}")


class InvalidIndexColumnError(StorageEngineError):
    pass


# Registry

class RegistryError(DatabaseError):
    pass


class DatabaseExistsError(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Database '{name}' already exists")


class DatabaseNotFoundError(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Database '{name}' does not exist")


class InvalidDatabaseNameError(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid database name: '{name}'")


class NoDatabaseSelectedError(RegistryError):
    def __init__(self):
        super().__init__("No database selected. Use 'CREATE DATABASE' or 'USE'")


# Persistence

class PersistenceError(DatabaseError):
    """Reading or writing a table file failed."""


class SchemaMismatchError(PersistenceError):
    pass


class CorruptFileError(PersistenceError):
    pass
