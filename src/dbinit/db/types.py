"""Shared types and exceptions for the database adapter layer."""

import re
from enum import Enum
from typing import Any


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class ConnectionError(DatabaseError):
    """Error connecting to database."""

    pass


class IntegrityError(DatabaseError):
    """Database integrity constraint violation."""

    pass


# Identifiers (schema and table names) are interpolated into DDL unquoted.
# PostgreSQL folds unquoted names to lower case, so names must already be
# lower case to match what information_schema reports.
IDENTIFIER_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


def is_valid_identifier(name: str | None) -> bool:
    """Check whether a name is safe to interpolate as an SQL identifier."""
    return bool(name) and IDENTIFIER_PATTERN.match(name) is not None


# Type alias for database rows
Row = dict[str, Any]
