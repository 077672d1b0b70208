"""Tests for connection acquisition with retry."""

from unittest.mock import Mock

import pytest

from dbinit.connection import ConnectionManager
from dbinit.db import ConnectionError as DBConnectionError
from dbinit.db import DatabaseConfig
from dbinit.errors import ConfigurationError, ConnectionExhaustedError


def flaky_factory(failures: int):
    """Adapter factory whose adapters fail to connect `failures` times."""
    calls = {"count": 0}

    def factory(config):
        adapter = Mock()
        adapter.describe.return_value = "test-db"

        def connect():
            calls["count"] += 1
            if calls["count"] <= failures:
                raise DBConnectionError(f"refused #{calls['count']}")

        adapter.connect.side_effect = connect
        return adapter

    factory.calls = calls
    return factory


@pytest.fixture
def pg_config():
    """Complete PostgreSQL configuration."""
    return DatabaseConfig(
        db_type="postgresql",
        host="db",
        database="app",
        user="postgres",
        password="secret",
    )


class TestConnectionManager:
    """Tests for ConnectionManager.connect."""

    def test_connects_first_try_without_sleeping(self, pg_config):
        """Test that the first attempt is immediate."""
        sleeps = []
        factory = flaky_factory(failures=0)
        manager = ConnectionManager(pg_config, sleep=sleeps.append, adapter_factory=factory)

        adapter = manager.connect()

        adapter.connect.assert_called_once()
        assert sleeps == []

    def test_exponential_backoff(self, pg_config):
        """Test that waits double between attempts, starting at one second."""
        sleeps = []
        factory = flaky_factory(failures=4)
        manager = ConnectionManager(pg_config, sleep=sleeps.append, adapter_factory=factory)

        manager.connect()

        assert sleeps == [1, 2, 4, 8]
        assert factory.calls["count"] == 5

    def test_exhausted(self, pg_config):
        """Test that ten failures raise ConnectionExhaustedError with the last cause."""
        sleeps = []
        factory = flaky_factory(failures=100)
        manager = ConnectionManager(pg_config, sleep=sleeps.append, adapter_factory=factory)

        with pytest.raises(ConnectionExhaustedError) as exc_info:
            manager.connect()

        assert factory.calls["count"] == 10
        assert sleeps == [1, 2, 4, 8, 16, 32, 64, 128, 256]
        assert exc_info.value.attempts == 10
        assert "refused #10" in str(exc_info.value.last_error)

    def test_custom_budget(self, pg_config):
        """Test a smaller retry budget and initial delay."""
        sleeps = []
        factory = flaky_factory(failures=100)
        manager = ConnectionManager(
            pg_config,
            max_attempts=3,
            initial_delay=0.5,
            sleep=sleeps.append,
            adapter_factory=factory,
        )

        with pytest.raises(ConnectionExhaustedError):
            manager.connect()

        assert sleeps == [0.5, 1.0]

    @pytest.mark.parametrize("missing", ["host", "user", "password", "database"])
    def test_missing_parameter_not_retried(self, pg_config, missing):
        """Test that incomplete configuration fails immediately."""
        setattr(pg_config, missing, "")
        factory = Mock()
        sleep = Mock()
        manager = ConnectionManager(pg_config, sleep=sleep, adapter_factory=factory)

        with pytest.raises(ConfigurationError) as exc_info:
            manager.connect()

        assert missing in str(exc_info.value)
        factory.assert_not_called()
        sleep.assert_not_called()

    @pytest.mark.parametrize("max_attempts, initial_delay", [(0, 1.0), (-1, 1.0), (3, -0.5)])
    def test_invalid_retry_settings(self, pg_config, max_attempts, initial_delay):
        """Test that an empty budget or a negative delay is rejected up front."""
        with pytest.raises(ConfigurationError):
            ConnectionManager(pg_config, max_attempts=max_attempts, initial_delay=initial_delay)

    @pytest.mark.parametrize("schema", ["public; DROP SCHEMA x", "AppData"])
    def test_invalid_schema_name(self, pg_config, schema):
        """Test that the schema name must be a plain lower-case identifier."""
        pg_config.schema = schema
        manager = ConnectionManager(pg_config, adapter_factory=Mock())

        with pytest.raises(ConfigurationError):
            manager.connect()

    def test_sqlite_requires_path(self):
        """Test that SQLite needs a database path."""
        manager = ConnectionManager(DatabaseConfig(db_type="sqlite"), adapter_factory=Mock())

        with pytest.raises(ConfigurationError):
            manager.connect()

    def test_sqlite_connects(self, manager):
        """Test connecting to a real SQLite file."""
        adapter = manager.connect()
        try:
            assert adapter.fetchscalar("SELECT 1") == 1
        finally:
            adapter.close()

    def test_unsupported_type(self):
        """Test that an unknown database type is a configuration error."""
        with pytest.raises(ConfigurationError):
            DatabaseConfig(db_type="oracle")
