"""Tests for the bootstrap state machine, end to end on SQLite."""

from unittest.mock import Mock

import pytest

from dbinit.bootstrapper import Bootstrapper, BootstrapState
from dbinit.catalog import MigrationCatalog
from dbinit.connection import ConnectionManager
from dbinit.db import DatabaseError
from dbinit.errors import (
    DiscoveryError,
    MigrationError,
    MigrationReadError,
    SchemaError,
    VersionSkewError,
)
from dbinit.ledger import VersionControlStore
from dbinit.versions import ZERO, Version

THREE_MIGRATIONS = {
    "1.sql": "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);",
    "2.sql": "ALTER TABLE users ADD COLUMN email TEXT;",
    "3.sql": "CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER);",
}


@pytest.fixture
def bootstrapper(manager, catalog, store):
    """Bootstrapper over the SQLite fixtures."""
    return Bootstrapper(connection_manager=manager, catalog=catalog, store=store)


def versions(tokens):
    return [Version(token) for token in tokens]


class TestUninitializedDatabase:
    """Tests for databases that are not yet version controlled."""

    def test_resets_and_applies_everything(self, conn, store, bootstrapper, write_migrations):
        """Test that an unversioned database is wiped, versioned and migrated."""
        conn.execute("CREATE TABLE legacy (id INTEGER)")
        conn.execute("CREATE VIEW legacy_view AS SELECT id FROM legacy")
        write_migrations(THREE_MIGRATIONS)

        result = bootstrapper.run()

        assert result.initialized is True
        assert result.database_version == ZERO
        assert result.applied == versions(["1", "2", "3"])
        assert result.final_version == Version("3")
        assert bootstrapper.state == BootstrapState.DONE

        tables = conn.get_tables()
        assert "legacy" not in tables
        assert {"users", "orders", "version_control"} <= set(tables)
        assert store.applied_versions(conn) == versions(["1", "2", "3"])

    def test_empty_catalog(self, conn, store, bootstrapper):
        """Test bootstrapping with no migrations at all."""
        result = bootstrapper.run()

        assert result.initialized is True
        assert result.applied == []
        assert result.final_version == ZERO
        assert store.is_initialized(conn)

    def test_reconnects_after_reset(self, sqlite_config, catalog, store, write_migrations):
        """Test that a new connection is opened after the schema reset."""
        write_migrations({"1.sql": "CREATE TABLE a (id INTEGER);"})
        manager = ConnectionManager(sqlite_config, sleep=lambda seconds: None)
        manager.connect = Mock(wraps=manager.connect)

        Bootstrapper(manager, catalog, store).run()

        assert manager.connect.call_count == 2


class TestVersionedDatabase:
    """Tests for databases already under version control."""

    def test_applies_only_pending(self, conn, store, bootstrapper, catalog, write_migrations):
        """Test that only versions above the database version are applied."""
        write_migrations(THREE_MIGRATIONS)
        store.create_table(conn)
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT)")
        for unit in catalog.discover()[:2]:
            store.record(conn, unit, unit.sql_text, succeeded=True)

        result = bootstrapper.run()

        assert result.initialized is False
        assert result.database_version == Version("2")
        assert result.applied == [Version("3")]
        assert "orders" in conn.get_tables()

    def test_second_run_is_noop(self, manager, catalog, store, write_migrations):
        """Test that a restart never re-applies recorded versions."""
        write_migrations(THREE_MIGRATIONS)
        Bootstrapper(manager, catalog, store).run()

        result = Bootstrapper(manager, catalog, store).run()

        assert result.initialized is False
        assert result.applied == []
        assert result.final_version == Version("3")

    def test_numeric_ordering_across_runs(self, manager, catalog, store, write_migrations):
        """Test that version 10 is newer than version 9."""
        write_migrations({"9.sql": "CREATE TABLE nine (id INTEGER);"})
        Bootstrapper(manager, catalog, store).run()

        write_migrations({"10.sql": "CREATE TABLE ten (id INTEGER);"})
        result = Bootstrapper(manager, catalog, store).run()

        assert result.database_version == Version("9")
        assert result.applied == [Version("10")]

    def test_version_skew(self, conn, store, bootstrapper, write_migrations):
        """Test that a database ahead of the application is rejected."""
        write_migrations(
            {
                "1.sql": "CREATE TABLE a (id INTEGER);",
                "2.sql": "CREATE TABLE b (id INTEGER);",
            }
        )
        store.create_table(conn)
        conn.execute(
            "INSERT INTO version_control (version, succeeded, applied_at, sql_text) "
            "VALUES ('5', 1, '2024-01-01 00:00:00', 'SELECT 5;')"
        )

        with pytest.raises(VersionSkewError) as exc_info:
            bootstrapper.run()

        assert exc_info.value.application_version == Version("2")
        assert exc_info.value.database_version == Version("5")
        assert bootstrapper.state == BootstrapState.FAILED
        assert bootstrapper.failed_in == BootstrapState.VERSIONED
        assert "a" not in conn.get_tables()
        assert store.applied_versions(conn) == [Version("5")]


class TestFailures:
    """Tests for aborted runs."""

    def test_failing_migration_keeps_earlier_ones(self, conn, store, bootstrapper, write_migrations):
        """Test that a failure aborts the run and leaves prior migrations applied."""
        write_migrations({**THREE_MIGRATIONS, "3.sql": "CREATE TABLE orders (id INTEGER PRIMARY KEY"})

        with pytest.raises(MigrationError) as exc_info:
            bootstrapper.run()

        assert exc_info.value.version == Version("3")
        assert bootstrapper.failed_in == BootstrapState.MIGRATING
        assert store.applied_versions(conn) == versions(["1", "2"])
        assert [str(record.version) for record in store.history(conn)] == ["1", "2"]

    def test_restart_after_fix(self, manager, catalog, store, write_migrations):
        """Test that fixing a failed migration lets the next run apply only it."""
        write_migrations({**THREE_MIGRATIONS, "3.sql": "NOT VALID SQL;"})
        with pytest.raises(MigrationError):
            Bootstrapper(manager, catalog, store).run()

        write_migrations({"3.sql": THREE_MIGRATIONS["3.sql"]})
        result = Bootstrapper(manager, catalog, store).run()

        assert result.applied == [Version("3")]

    def test_discovery_error(self, manager, store, tmp_path):
        """Test that an unusable catalog fails the run after connecting."""
        bootstrapper = Bootstrapper(manager, MigrationCatalog(tmp_path / "missing"), store)

        with pytest.raises(DiscoveryError):
            bootstrapper.run()

        assert bootstrapper.failed_in == BootstrapState.CONNECTED

    def test_non_utf8_migration(self, bootstrapper, migrations_dir):
        """Test that an undecodable migration fails the run with a read error."""
        (migrations_dir / "1.sql").write_bytes(b"INSERT INTO t VALUES ('caf\xe9');")

        with pytest.raises(MigrationReadError):
            bootstrapper.run()

        assert bootstrapper.failed_in == BootstrapState.MIGRATING

    def test_connection_closed_on_failure(self, catalog, store):
        """Test that the connection is closed when the run fails."""
        adapter = Mock()
        adapter.table_exists.side_effect = DatabaseError("catalog unavailable")
        manager = Mock()
        manager.connect.return_value = adapter

        with pytest.raises(SchemaError):
            Bootstrapper(manager, catalog, store).run()

        adapter.close.assert_called_once()

    def test_reset_failure_is_schema_error(self, catalog, store):
        """Test that a failed reset is reported as a schema error."""
        adapter = Mock()
        adapter.table_exists.return_value = False
        adapter.reset_schema.side_effect = DatabaseError("permission denied")
        manager = Mock()
        manager.connect.return_value = adapter

        bootstrapper = Bootstrapper(manager, catalog, store)
        with pytest.raises(SchemaError):
            bootstrapper.run()

        assert bootstrapper.failed_in == BootstrapState.UNINITIALIZED
        manager.connect.assert_called_once()


class TestInspect:
    """Tests for the read-only status report."""

    def test_uninitialized(self, bootstrapper, write_migrations, conn):
        """Test status of a database without a ledger."""
        write_migrations(THREE_MIGRATIONS)
        conn.execute("CREATE TABLE keep_me (id INTEGER)")

        status = bootstrapper.inspect()

        assert status.initialized is False
        assert status.database_version == ZERO
        assert status.application_version == Version("3")
        assert [str(unit.version) for unit in status.pending] == ["1", "2", "3"]
        assert "keep_me" in conn.get_tables()

    def test_skewed(self, bootstrapper, write_migrations, conn, store, catalog):
        """Test that status reports skew without failing."""
        write_migrations({"1.sql": "SELECT 1;"})
        store.create_table(conn)
        store.record(conn, catalog.discover()[0], "SELECT 1;", succeeded=True)
        conn.execute(
            "INSERT INTO version_control (version, succeeded, applied_at, sql_text) "
            "VALUES ('7', 1, '2024-01-01 00:00:00', 'SELECT 7;')"
        )

        status = bootstrapper.inspect()

        assert status.is_skewed
        assert status.pending == []
        assert [str(record.version) for record in status.history] == ["1", "7"]
