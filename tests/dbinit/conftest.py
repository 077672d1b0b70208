"""Shared fixtures for dbinit tests."""

from pathlib import Path

import pytest

from dbinit.catalog import MigrationCatalog
from dbinit.connection import ConnectionManager
from dbinit.db import DatabaseConfig, create_database
from dbinit.ledger import VersionControlStore


@pytest.fixture
def sqlite_config(tmp_path):
    """Configuration for a throwaway SQLite database."""
    return DatabaseConfig(db_type="sqlite", db_path=tmp_path / "app.db")


@pytest.fixture
def conn(sqlite_config):
    """Connected SQLite adapter."""
    adapter = create_database(sqlite_config)
    adapter.connect()

    yield adapter

    adapter.close()


@pytest.fixture
def migrations_dir(tmp_path):
    """Empty migrations directory."""
    path = tmp_path / "migrations"
    path.mkdir()
    return path


@pytest.fixture
def write_migrations(migrations_dir):
    """Write {filename: sql} into the migrations directory."""

    def _write(files: dict[str, str]) -> Path:
        for name, sql in files.items():
            (migrations_dir / name).write_text(sql)
        return migrations_dir

    return _write


@pytest.fixture
def store():
    """Ledger store on the default table."""
    return VersionControlStore()


@pytest.fixture
def catalog(migrations_dir):
    """Catalog over the migrations directory."""
    return MigrationCatalog(migrations_dir)


@pytest.fixture
def manager(sqlite_config):
    """Connection manager that never sleeps."""
    return ConnectionManager(sqlite_config, sleep=lambda seconds: None)
