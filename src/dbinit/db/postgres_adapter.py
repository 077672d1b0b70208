"""PostgreSQL database adapter implementation.

This adapter wraps psycopg3 functionality to provide the DatabaseAdapter
interface. The connection runs in autocommit mode; begin() issues an explicit
BEGIN so that a migration and its ledger record share one transaction.
"""

from typing import Any

try:
    import psycopg
    from psycopg import sql
    from psycopg.rows import dict_row
except ImportError as e:
    raise ImportError(
        "PostgreSQL dependencies not installed. "
        'Install with: pip install -e ".[postgresql]"'
    ) from e

from .interface import DatabaseAdapter
from .types import ConnectionError as DBConnectionError
from .types import DatabaseError, is_valid_identifier
from .types import IntegrityError as DBIntegrityError


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter.

    Wraps psycopg3 functionality to implement the DatabaseAdapter interface.
    A single connection is used; bootstrap never needs more than one.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "app",
        user: str = "postgres",
        password: str = "",
        schema: str = "public",
        connect_timeout: int = 10,
    ):
        """Initialize PostgreSQL adapter.

        Args:
            host: PostgreSQL server host
            port: PostgreSQL server port
            database: Database name
            user: Database user
            password: Database password
            schema: Schema holding the application tables
            connect_timeout: Seconds to wait for a single connection attempt
        """
        if not is_valid_identifier(schema):
            raise ValueError(f"Invalid schema name: {schema!r}")

        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.schema = schema
        self.connect_timeout = connect_timeout

        self._conn: Any = None  # psycopg.Connection

    def connect(self) -> None:
        """Establish database connection."""
        try:
            self._conn = psycopg.connect(
                host=self.host,
                port=self.port,
                dbname=self.database,
                user=self.user,
                password=self.password,
                connect_timeout=self.connect_timeout,
                # Unqualified names resolve to the target schema
                options=f"-c search_path={self.schema}",
                autocommit=True,
                row_factory=dict_row,
            )
        except psycopg.Error as e:
            raise DBConnectionError(f"Failed to connect to PostgreSQL database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _require_connection(self) -> Any:
        if not self._conn:
            raise DatabaseError("No active connection")
        return self._conn

    def begin(self) -> None:
        """Open an explicit transaction."""
        conn = self._require_connection()
        try:
            conn.execute("BEGIN")
        except psycopg.Error as e:
            raise DatabaseError(f"Failed to begin transaction: {e}") from e

    def commit(self) -> None:
        """Commit current transaction."""
        conn = self._require_connection()
        try:
            conn.commit()
        except psycopg.Error as e:
            raise DatabaseError(f"Failed to commit transaction: {e}") from e

    def rollback(self) -> None:
        """Rollback current transaction."""
        conn = self._require_connection()
        try:
            conn.rollback()
        except psycopg.Error as e:
            raise DatabaseError(f"Failed to rollback transaction: {e}") from e

    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Execute a query and return cursor.

        Note: PostgreSQL uses %s placeholders, but this method expects queries
        with ? placeholders (SQLite style) and converts them automatically.
        """
        conn = self._require_connection()

        try:
            # Convert SQLite-style ? placeholders to PostgreSQL-style %s
            pg_query = query.replace("?", "%s")

            cursor = conn.cursor()
            if params:
                cursor.execute(pg_query, params)
            else:
                cursor.execute(pg_query)
            return cursor
        except psycopg.errors.IntegrityError as e:
            raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
        except psycopg.Error as e:
            raise DatabaseError(f"Query execution failed: {e}") from e

    def execute_script(self, script: str) -> None:
        """Execute a script as one batch.

        Without parameters psycopg sends the text through the simple query
        protocol, which accepts several statements separated by semicolons.
        """
        conn = self._require_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(script)
        except psycopg.Error as e:
            raise DatabaseError(f"Script execution failed: {e}") from e

    def get_tables(self) -> list[str]:
        """Get list of all tables in the target schema."""
        rows = self.fetchall(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = ?
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            (self.schema,),
        )
        return [row["table_name"] for row in rows]

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the target schema."""
        row = self.fetchone(
            """
            SELECT 1 AS found
            FROM information_schema.tables
            WHERE table_schema = ? AND table_name = ?
            LIMIT 1
            """,
            (self.schema, table_name),
        )
        return row is not None

    def reset_schema(self) -> None:
        """Drop and recreate the target schema with everything in it."""
        conn = self._require_connection()
        schema = sql.Identifier(self.schema)
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(schema))
                cursor.execute(sql.SQL("CREATE SCHEMA {}").format(schema))
        except psycopg.Error as e:
            raise DatabaseError(f"Failed to reset schema {self.schema}: {e}") from e

    def describe(self) -> str:
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.database}"

    def __repr__(self) -> str:
        """String representation."""
        status = "connected" if self._conn else "disconnected"
        return (
            f"PostgreSQLAdapter(host={self.host}, port={self.port}, "
            f"database={self.database}, schema={self.schema}, status={status})"
        )
