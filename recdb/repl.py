"""
Interactive REPL for the record store.
"""

import sys
from typing import Optional, TextIO

from .engine import DatabaseEngine
from .errors import DatabaseError
from .log import configure_logging
from .types import format_row

EXIT_COMMAND = "EXIT"

BANNER = """Custom Database Engine
Commands:
  CREATE DATABASE dbname
  USE dbname
  SHOW DATABASES
  DROP DATABASE dbname
  INSERT INTO table VALUES (1, 'name')
  SELECT * FROM table
  SELECT * FROM table WHERE id = 1
  UPDATE table SET name = 'newname' WHERE id = 1
  DELETE FROM table WHERE id = 1
  EXIT to quit"""


class DatabaseREPL:
    """Command-line REPL for interacting with the database."""

    def __init__(self, data_dir: str = "data", stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.engine = DatabaseEngine(data_dir)
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    @property
    def prompt(self) -> str:
        current = self.engine.current_database
        return f"{current}> " if current else "No DB> "

    def run(self):
        """Run the REPL until EXIT or end of input, then save every database."""
        self._print(BANNER)
        try:
            while True:
                self.stdout.write(self.prompt)
                self.stdout.flush()
                line = self.stdin.readline()
                if not line:
                    self._print()
                    break
                line = line.rstrip("\r\n")
                if line == EXIT_COMMAND:
                    break
                self.handle_line(line)
        except KeyboardInterrupt:
            self._print("\nInterrupted")
        finally:
            self.engine.close()

    def handle_line(self, line: str):
        """Execute one line, reporting any error and carrying on."""
        result = self.engine.run_line(line)
        if result is None:
            return
        if result['status'] == 'ERROR':
            self.stderr.write(f"Error: {result['message']}\n")
            self.stderr.flush()
            return
        self._display_result(result)

    def _display_result(self, result: dict):
        """Display command result in a readable format."""
        if 'message' in result:
            self._print(result['message'])

        if 'databases' in result:
            self._print("Databases:")
            for name in result['databases']:
                marker = " (current)" if name == result['current'] else ""
                self._print(f"  {name}{marker}")

        if 'rows' in result:
            rows = result['rows']
            if not rows:
                self._print(f"No data in '{self.engine.current_database}'")
                return
            for row in rows:
                self._print(format_row(row))

    def _print(self, text: str = ""):
        self.stdout.write(text + "\n")
        self.stdout.flush()


def main(argv=None) -> int:
    """Main entry point for the REPL."""
    import argparse

    parser = argparse.ArgumentParser(description="Record store REPL")
    parser.add_argument("--data-dir", default="data", help="Directory for database files")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging verbosity (written to stderr)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        repl = DatabaseREPL(args.data_dir)
        repl.run()
    except (DatabaseError, OSError) as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
