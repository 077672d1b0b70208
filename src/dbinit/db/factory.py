"""Database factory for creating database adapters.

This module provides a factory function and configuration class for creating
database adapters based on the database type (SQLite or PostgreSQL).
"""

from dataclasses import dataclass
from pathlib import Path

from dbinit.errors import ConfigurationError

from .interface import DatabaseAdapter
from .sqlite_adapter import SQLiteAdapter
from .types import DatabaseType, is_valid_identifier


@dataclass
class DatabaseConfig:
    """Database configuration container.

    Values are consumed as already resolved; validate() checks that they are
    usable before any connection attempt is made.

    Attributes:
        db_type: Type of database ('sqlite' or 'postgresql')
        db_path: Path to SQLite database file (for SQLite only)
        host: PostgreSQL host (for PostgreSQL only)
        port: PostgreSQL port (for PostgreSQL only)
        database: Target database name (for PostgreSQL only)
        user: Administrative user (for PostgreSQL only)
        password: Administrative password (for PostgreSQL only)
        schema: Schema reset on first bootstrap (for PostgreSQL only)
    """

    db_type: DatabaseType | str
    # SQLite-specific
    db_path: Path | None = None
    # PostgreSQL-specific
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    schema: str = "public"

    def __post_init__(self):
        """Normalize field types after initialization."""
        # Convert string to DatabaseType enum
        if isinstance(self.db_type, str) and not isinstance(self.db_type, DatabaseType):
            try:
                self.db_type = DatabaseType(self.db_type.lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"Unsupported database type: {self.db_type}. "
                    f"Must be one of: {', '.join(t.value for t in DatabaseType)}"
                ) from e

        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path) if self.db_path else None

        if self.db_type == DatabaseType.POSTGRESQL and self.port is None:
            self.port = 5432

    def validate(self) -> None:
        """Check that every parameter required by the backend is present.

        Raises:
            ConfigurationError: If a required value is empty or an identifier
                is not a plain name
        """
        if self.db_type == DatabaseType.SQLITE:
            if self.db_path is None:
                raise ConfigurationError("db_path is required for SQLite")
            return

        missing = [
            name
            for name in ("host", "user", "password", "database")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing PostgreSQL connection parameters: {', '.join(missing)}"
            )

        if not is_valid_identifier(self.schema):
            raise ConfigurationError(f"Invalid schema name: {self.schema!r}")

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Build a configuration from environment variables.

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed
        """
        from common.env import env

        if env.database_type().lower() == "sqlite":
            return cls(db_type="sqlite", db_path=env.database_path())

        try:
            port = env.postgres_port()
        except ValueError as e:
            raise ConfigurationError(f"POSTGRES_PORT must be an integer: {e}") from e

        return cls(
            db_type="postgresql",
            host=env.postgres_host(),
            port=port,
            database=env.postgres_database(),
            user=env.postgres_user(),
            password=env.postgres_password(),
            schema=env.postgres_schema(),
        )


def create_database(config: DatabaseConfig) -> DatabaseAdapter:
    """Factory function to create appropriate database adapter.

    The adapter is returned unconnected.

    Args:
        config: Database configuration

    Returns:
        Database adapter instance

    Raises:
        ConfigurationError: If database type is unsupported

    Example:
        >>> config = DatabaseConfig(db_type="sqlite", db_path=Path("./data/app.db"))
        >>> adapter = create_database(config)
        >>> adapter.connect()
    """
    if config.db_type == DatabaseType.SQLITE:
        return SQLiteAdapter(config.db_path)

    elif config.db_type == DatabaseType.POSTGRESQL:
        # Import here to avoid requiring psycopg when not using PostgreSQL
        from .postgres_adapter import PostgreSQLAdapter

        return PostgreSQLAdapter(
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.user,
            password=config.password,
            schema=config.schema,
        )

    else:
        # This should never happen due to enum validation
        raise ConfigurationError(f"Unsupported database type: {config.db_type}")
