"""Database abstraction layer for dbinit.

This package provides the connection client the bootstrap components operate
on, with SQLite and PostgreSQL backends.

Example:
    >>> from dbinit.db import DatabaseConfig, create_database
    >>>
    >>> config = DatabaseConfig(db_type="sqlite", db_path="data/app.db")
    >>> adapter = create_database(config)
    >>>
    >>> adapter.connect()
    >>> adapter.begin()
    >>> adapter.execute_script("CREATE TABLE notes (id INTEGER PRIMARY KEY);")
    >>> adapter.commit()
    >>> adapter.close()
"""

from .factory import DatabaseConfig, create_database
from .interface import DatabaseAdapter
from .types import (
    ConnectionError,
    DatabaseError,
    DatabaseType,
    IntegrityError,
    is_valid_identifier,
)

__all__ = [
    # Factory
    "DatabaseConfig",
    "create_database",
    # Interface
    "DatabaseAdapter",
    # Types and exceptions
    "DatabaseType",
    "DatabaseError",
    "ConnectionError",
    "IntegrityError",
    "is_valid_identifier",
]
