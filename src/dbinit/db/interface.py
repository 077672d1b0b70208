"""Abstract database adapter interface.

This module defines the interface that all database adapters must implement.
An adapter is the opaque connection client the bootstrap components operate
on: it connects, runs queries with bound parameters, runs raw migration
scripts, and exposes explicit transaction control.
"""

from abc import ABC, abstractmethod
from typing import Any

from .types import Row


class DatabaseAdapter(ABC):
    """Abstract database adapter interface.

    Adapters run in autocommit mode. A statement executed outside of
    begin()/commit() takes effect immediately; statements executed after
    begin() are only persisted by commit().
    """

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def begin(self) -> None:
        """Open an explicit transaction.

        Raises:
            DatabaseError: If the transaction cannot be started
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit current transaction.

        Raises:
            DatabaseError: If commit fails
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Rollback current transaction.

        Raises:
            DatabaseError: If rollback fails
        """
        pass

    @abstractmethod
    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Execute a single query and return cursor.

        Queries use '?' placeholders regardless of backend.

        Args:
            query: SQL query to execute
            params: Query parameters (optional)

        Returns:
            Database cursor

        Raises:
            DatabaseError: If execution fails
            IntegrityError: If integrity constraint violated
        """
        pass

    @abstractmethod
    def execute_script(self, script: str) -> None:
        """Execute a batch of SQL statements exactly as written.

        The script is not rewritten in any way (no placeholder conversion),
        and runs inside the current transaction if one is open.

        Args:
            script: One or more SQL statements

        Raises:
            DatabaseError: If any statement fails
        """
        pass

    def fetchone(self, query: str, params: tuple | None = None) -> Row | None:
        """Execute query and fetch one result as dictionary."""
        cursor = self.execute(query, params)
        row = cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    def fetchall(self, query: str, params: tuple | None = None) -> list[Row]:
        """Execute query and fetch all results as list of dictionaries."""
        cursor = self.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def fetchscalar(self, query: str, params: tuple | None = None) -> Any:
        """Execute query and return first column of first row.

        Returns:
            First column of first row, or None if no results
        """
        result = self.fetchone(query, params)
        if result is None:
            return None
        return next(iter(result.values()))

    @abstractmethod
    def get_tables(self) -> list[str]:
        """Get list of all tables in the target schema.

        Raises:
            DatabaseError: If query fails
        """
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check whether a table exists, using the schema catalog.

        Absence is a normal answer and never raises.

        Raises:
            DatabaseError: If the catalog query itself fails
        """
        pass

    @abstractmethod
    def reset_schema(self) -> None:
        """Drop and recreate the target schema, destroying all its objects.

        The session may be unusable afterwards; callers reconnect.

        Raises:
            DatabaseError: If the reset fails
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human readable connection target, without credentials."""
        pass
