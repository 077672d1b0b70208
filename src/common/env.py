"""Environment configuration interface for dbinit.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from common.constants import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_LEDGER_TABLE,
    DEFAULT_MIGRATIONS_DIR,
    INITIAL_RETRY_DELAY,
    MAX_CONNECT_ATTEMPTS,
)

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def database_type() -> str:
        """Get the database type (sqlite or postgresql).

        Returns:
            Database type, defaults to 'postgresql'
        """
        return os.getenv("DATABASE_TYPE", "postgresql")

    @staticmethod
    def database_path() -> Path:
        """Get the SQLite database file path.

        Returns:
            Path to SQLite database file, defaults to ./data/app.db
        """
        return Path(os.getenv("DATABASE_PATH", str(DEFAULT_DATABASE_PATH)))

    @staticmethod
    def postgres_host() -> str:
        """Get PostgreSQL host.

        Returns:
            PostgreSQL host, defaults to 'localhost'
        """
        return os.getenv("POSTGRES_HOST", "localhost")

    @staticmethod
    def postgres_port() -> int:
        """Get PostgreSQL port.

        Returns:
            PostgreSQL port, defaults to 5432
        """
        return int(os.getenv("POSTGRES_PORT", "5432"))

    @staticmethod
    def postgres_database() -> str:
        """Get the target database name.

        Returns:
            Database name, defaults to 'app'
        """
        return os.getenv("POSTGRES_DB", "app")

    @staticmethod
    def postgres_user() -> str:
        """Get the administrative PostgreSQL user.

        Returns:
            Database user, defaults to 'postgres'
        """
        return os.getenv("POSTGRES_USER", "postgres")

    @staticmethod
    def postgres_password() -> str:
        """Get the administrative PostgreSQL password.

        Returns:
            Database password, defaults to empty string
        """
        return os.getenv("POSTGRES_PASSWORD", "")

    @staticmethod
    def postgres_schema() -> str:
        """Get the schema that is reset on first bootstrap.

        Returns:
            Schema name, defaults to 'public'
        """
        return os.getenv("POSTGRES_SCHEMA", "public")

    @staticmethod
    def migrations_dir() -> Path:
        """Get the directory holding <version>.sql migration files.

        Returns:
            Migrations directory, defaults to ./sql/migrations
        """
        return Path(os.getenv("MIGRATIONS_DIR", str(DEFAULT_MIGRATIONS_DIR)))

    @staticmethod
    def ledger_table() -> str:
        """Get the version-control ledger table name.

        Returns:
            Table name, defaults to 'version_control'
        """
        return os.getenv("LEDGER_TABLE", DEFAULT_LEDGER_TABLE)

    @staticmethod
    def connect_attempts() -> int:
        """Get the connection retry budget.

        Returns:
            Number of attempts, defaults to 10
        """
        return int(os.getenv("CONNECT_ATTEMPTS", str(MAX_CONNECT_ATTEMPTS)))

    @staticmethod
    def connect_retry_delay() -> float:
        """Get the wait before the first connection retry.

        Returns:
            Delay in seconds, defaults to 1
        """
        return float(os.getenv("CONNECT_RETRY_DELAY", str(INITIAL_RETRY_DELAY)))


# Singleton instance for convenient access
env = Environment()
