"""
Tokenizer and command grammars.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .errors import CommandSyntaxError, NoDatabaseSelectedError, UnknownCommandError
from .types import Column, ColumnType, INT32_MAX, INT32_MIN

KEYWORDS = frozenset({
    "CREATE", "DATABASE", "USE", "SHOW", "DATABASES", "DROP",
    "INSERT", "INTO", "VALUES", "SELECT", "FROM", "WHERE",
    "UPDATE", "SET", "DELETE",
})

PUNCTUATION = "(),="

# Placeholder naming the single implicit table of every database.
TABLE_NAME = "table"


class TokenType(Enum):
    KEYWORD = "KEYWORD"
    INTEGER = "INTEGER"
    TEXT = "TEXT"
    PUNCTUATION = "PUNCTUATION"
    IDENTIFIER = "IDENTIFIER"


@dataclass(frozen=True)
class Token:
    kind: TokenType
    text: str


def classify(word: str) -> Token:
    """Classify one flushed word as a keyword, integer or identifier."""
    if word in KEYWORDS:
        return Token(TokenType.KEYWORD, word)
    if word.isascii() and word.isdigit():
        return Token(TokenType.INTEGER, word)
    return Token(TokenType.IDENTIFIER, word)


def tokenize(line: str) -> List[Token]:
    """
    Split a command line into classified tokens.

    Single quotes delimit a string literal whose contents are kept verbatim.
    Outside a literal, whitespace separates tokens and each of ``( ) , =``
    is a token of its own. A literal left open at the end of the line is
    flushed like an ordinary word. Never fails.
    """
    tokens = []
    current = ""
    in_string = False

    for char in line:
        if char == "'":
            if in_string:
                tokens.append(Token(TokenType.TEXT, current))
                current = ""
            in_string = not in_string
        elif in_string:
            current += char
        elif char.isspace():
            if current:
                tokens.append(classify(current))
                current = ""
        elif char in PUNCTUATION:
            if current:
                tokens.append(classify(current))
                current = ""
            tokens.append(Token(TokenType.PUNCTUATION, char))
        else:
            current += char

    if current:
        tokens.append(classify(current))
    return tokens


class CommandType(Enum):
    """Commands understood by the interpreter."""
    CREATE_DATABASE = "CREATE_DATABASE"
    USE = "USE"
    SHOW_DATABASES = "SHOW_DATABASES"
    DROP_DATABASE = "DROP_DATABASE"
    INSERT = "INSERT"
    SELECT = "SELECT"
    SELECT_ALL = "SELECT_ALL"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class TokenStream:
    """Positional cursor over a token list used by the grammars."""

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = tokens
        self.position = 0

    def expect(self, kind: TokenType, text: Optional[str] = None) -> Token:
        """Consume the next token, failing unless it has ``kind`` (and ``text``)."""
        position = self.position
        wanted = f"{kind.value} '{text}'" if text is not None else kind.value
        if position >= len(self.tokens):
            raise CommandSyntaxError(
                position, f"Syntax error at token {position}: expected {wanted}, got end of input")
        token = self.tokens[position]
        if token.kind != kind or (text is not None and token.text != text):
            raise CommandSyntaxError(
                position,
                f"Syntax error at token {position}: expected {wanted}, "
                f"got {token.kind.value} '{token.text}'")
        self.position += 1
        return token

    def keyword(self, text: str) -> Token:
        return self.expect(TokenType.KEYWORD, text)

    def punct(self, text: str) -> Token:
        return self.expect(TokenType.PUNCTUATION, text)

    def identifier(self, text: Optional[str] = None) -> str:
        return self.expect(TokenType.IDENTIFIER, text).text

    def integer(self) -> int:
        position = self.position
        value = int(self.expect(TokenType.INTEGER).text)
        if not INT32_MIN <= value <= INT32_MAX:
            raise CommandSyntaxError(
                position, f"Syntax error at token {position}: integer {value} out of range")
        return value

    def text(self) -> str:
        return self.expect(TokenType.TEXT).text

    def expect_end(self) -> None:
        if self.position != len(self.tokens):
            token = self.tokens[self.position]
            raise CommandSyntaxError(
                self.position,
                f"Syntax error at token {self.position}: unexpected '{token.text}' after command")


class CommandParser:
    """Validates token sequences against the fixed command grammars."""

    def __init__(self):
        self._dispatch = {
            "CREATE": self._parse_create,
            "USE": self._parse_use,
            "SHOW": self._parse_show_databases,
            "DROP": self._parse_drop_database,
            "INSERT": self._parse_insert,
            "SELECT": self._parse_select,
            "UPDATE": self._parse_update,
            "DELETE": self._parse_delete,
        }

    def parse(self, line: str, schema: Optional[Sequence[Column]] = None) -> Optional[Dict[str, Any]]:
        """
        Parse one command line into a structured dictionary.

        ``schema`` is the schema of the currently selected table, or None if
        no database is selected. Returns None for a blank line.

        Raises:
            UnknownCommandError: If the leading word is not a command
            NoDatabaseSelectedError: For a table command with no selection
            CommandSyntaxError: If the tokens do not match the grammar
        """
        tokens = tokenize(line)
        if not tokens:
            return None
        handler = self._dispatch.get(tokens[0].text)
        if handler is None:
            raise UnknownCommandError(tokens[0].text)
        return handler(TokenStream(tokens), schema)

    def _parse_create(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """CREATE DATABASE <name>"""
        stream.keyword("CREATE")
        stream.keyword("DATABASE")
        name = stream.identifier()
        stream.expect_end()
        return {'type': CommandType.CREATE_DATABASE, 'database': name}

    def _parse_use(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """USE <name>"""
        stream.keyword("USE")
        name = stream.identifier()
        stream.expect_end()
        return {'type': CommandType.USE, 'database': name}

    def _parse_show_databases(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """SHOW DATABASES"""
        stream.keyword("SHOW")
        stream.keyword("DATABASES")
        stream.expect_end()
        return {'type': CommandType.SHOW_DATABASES}

    def _parse_drop_database(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """DROP DATABASE <name>"""
        stream.keyword("DROP")
        stream.keyword("DATABASE")
        name = stream.identifier()
        stream.expect_end()
        return {'type': CommandType.DROP_DATABASE, 'database': name}

    def _parse_insert(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """INSERT INTO table VALUES ( <int> , <text> )"""
        schema = self._require(schema)
        stream.keyword("INSERT")
        stream.keyword("INTO")
        stream.identifier(TABLE_NAME)
        stream.keyword("VALUES")
        stream.punct("(")

        values = []
        for position, col in enumerate(schema):
            if position > 0:
                stream.punct(",")
            if col.dtype == ColumnType.INT:
                values.append(stream.integer())
            else:
                values.append(stream.text())

        stream.punct(")")
        stream.expect_end()
        return {'type': CommandType.INSERT, 'values': tuple(values)}

    def _parse_select(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """SELECT * FROM table [WHERE id = <int>]"""
        schema = self._require(schema)
        stream.keyword("SELECT")
        stream.identifier("*")
        stream.keyword("FROM")
        stream.identifier(TABLE_NAME)
        if len(stream.tokens) == 4:
            return {'type': CommandType.SELECT_ALL}

        row_id = self._where_id(stream, schema)
        stream.expect_end()
        return {'type': CommandType.SELECT, 'id': row_id}

    def _parse_update(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """UPDATE table SET name = <text> WHERE id = <int>"""
        schema = self._require(schema)
        stream.keyword("UPDATE")
        stream.identifier(TABLE_NAME)
        stream.keyword("SET")
        stream.identifier(schema[1].name)
        stream.punct("=")
        value = stream.text()
        row_id = self._where_id(stream, schema)
        stream.expect_end()
        return {'type': CommandType.UPDATE, 'id': row_id, 'column': 1, 'value': value}

    def _parse_delete(self, stream: TokenStream, schema) -> Dict[str, Any]:
        """DELETE FROM table WHERE id = <int>"""
        schema = self._require(schema)
        stream.keyword("DELETE")
        stream.keyword("FROM")
        stream.identifier(TABLE_NAME)
        row_id = self._where_id(stream, schema)
        stream.expect_end()
        return {'type': CommandType.DELETE, 'id': row_id}

    def _where_id(self, stream: TokenStream, schema) -> int:
        stream.keyword("WHERE")
        stream.identifier(schema[0].name)
        stream.punct("=")
        return stream.integer()

    @staticmethod
    def _require(schema):
        if schema is None:
            raise NoDatabaseSelectedError()
        return schema
