"""SQLite database adapter implementation.

This adapter wraps sqlite3 functionality to provide the DatabaseAdapter
interface. The connection runs with isolation_level=None so that transactions
are only ever opened explicitly through begin().
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from .interface import DatabaseAdapter
from .types import ConnectionError as DBConnectionError
from .types import DatabaseError
from .types import IntegrityError as DBIntegrityError

# The implicit datetime adapter is deprecated since Python 3.12
sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))


def split_statements(script: str) -> list[str]:
    """Split an SQL script into complete statements.

    sqlite3.complete_statement understands string literals and trigger
    bodies, so semicolons inside them do not end a statement.

    Example:
        >>> split_statements("CREATE TABLE a (x TEXT); INSERT INTO a VALUES (';');")
        ['CREATE TABLE a (x TEXT);', "INSERT INTO a VALUES (';');"]
    """
    statements = []
    buffer = ""
    for char in script:
        buffer += char
        if char == ";" and sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""

    # A trailing statement may lack its semicolon; trailing comments are dropped
    remainder = [
        line for line in buffer.splitlines() if line.strip() and not line.strip().startswith("--")
    ]
    if remainder:
        statements.append(buffer.strip())

    return statements


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter.

    Wraps sqlite3 functionality to implement the DatabaseAdapter interface.
    """

    def __init__(self, db_path: str | Path):
        """Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Establish database connection."""
        try:
            # Create parent directory if it doesn't exist
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row  # Return rows as dict-like objects
        except (sqlite3.Error, OSError) as e:
            raise DBConnectionError(f"Failed to connect to SQLite database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _require_connection(self) -> sqlite3.Connection:
        if not self._conn:
            raise DatabaseError("No active connection")
        return self._conn

    def begin(self) -> None:
        """Open an explicit transaction."""
        conn = self._require_connection()
        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to begin transaction: {e}") from e

    def commit(self) -> None:
        """Commit current transaction."""
        conn = self._require_connection()
        try:
            conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to commit transaction: {e}") from e

    def rollback(self) -> None:
        """Rollback current transaction."""
        conn = self._require_connection()
        try:
            conn.rollback()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to rollback transaction: {e}") from e

    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Execute a query and return cursor."""
        conn = self._require_connection()

        try:
            cursor = conn.cursor()
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            return cursor
        except sqlite3.IntegrityError as e:
            raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Query execution failed: {e}") from e

    def execute_script(self, script: str) -> None:
        """Execute every statement of a script inside the current transaction.

        Connection.executescript() is not used because it commits any pending
        transaction before running.
        """
        conn = self._require_connection()
        cursor = conn.cursor()
        for statement in split_statements(script):
            try:
                cursor.execute(statement)
            except sqlite3.Error as e:
                raise DatabaseError(f"Statement failed: {e}\n{statement}") from e

    def get_tables(self) -> list[str]:
        """Get list of all user tables in database."""
        rows = self.fetchall(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in rows]

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in sqlite_master."""
        row = self.fetchone(
            "SELECT 1 AS found FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None

    def reset_schema(self) -> None:
        """Drop every user table and view in the database file."""
        objects = self.fetchall(
            "SELECT type, name FROM sqlite_master "
            "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
            "ORDER BY type DESC"
        )
        # Names come from sqlite_master, quote them as identifiers
        for obj in objects:
            kind = "VIEW" if obj["type"] == "view" else "TABLE"
            quoted = '"' + obj["name"].replace('"', '""') + '"'
            self.execute(f"DROP {kind} IF EXISTS {quoted}")

    def describe(self) -> str:
        return f"sqlite:{self.db_path}"

    def __repr__(self) -> str:
        """String representation."""
        status = "connected" if self._conn else "disconnected"
        return f"SQLiteAdapter(db_path={self.db_path}, status={status})"
