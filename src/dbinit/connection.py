"""Connection acquisition with bounded retry."""

import time
from collections.abc import Callable

from common.constants import INITIAL_RETRY_DELAY, MAX_CONNECT_ATTEMPTS
from common.logger import get_logger, success
from dbinit.db import ConnectionError as DBConnectionError
from dbinit.db import DatabaseAdapter, DatabaseConfig, create_database
from dbinit.errors import ConfigurationError, ConnectionExhaustedError

logger = get_logger(__name__)


class ConnectionManager:
    """Opens database connections, retrying transient failures.

    Retries use exponential backoff without jitter or cap: the wait before
    retry n is initial_delay * 2 ** (n - 1). The first attempt is immediate.

    Example:
        >>> manager = ConnectionManager(DatabaseConfig.from_env())
        >>> conn = manager.connect()
    """

    def __init__(
        self,
        config: DatabaseConfig,
        max_attempts: int = MAX_CONNECT_ATTEMPTS,
        initial_delay: float = INITIAL_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        adapter_factory: Callable[[DatabaseConfig], DatabaseAdapter] = create_database,
    ):
        """Initialize connection manager.

        Args:
            config: Resolved connection settings
            max_attempts: Retry budget, first attempt included
            initial_delay: Seconds to wait before the first retry
            sleep: Blocking wait function
            adapter_factory: Builds an unconnected adapter from the config

        Raises:
            ConfigurationError: If the retry budget or delay is out of range
        """
        if max_attempts < 1:
            raise ConfigurationError(
                f"At least one connection attempt is required, got {max_attempts}"
            )
        if initial_delay < 0:
            raise ConfigurationError(f"Retry delay cannot be negative, got {initial_delay:g}")

        self.config = config
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._sleep = sleep
        self._adapter_factory = adapter_factory

    def connect(self) -> DatabaseAdapter:
        """Open a connection to the target database.

        Returns:
            Connected adapter, owned by the caller

        Raises:
            ConfigurationError: If the configuration is incomplete (not retried)
            ConnectionExhaustedError: If every attempt failed
        """
        self.config.validate()

        last_error: Exception | None = None
        delay = self.initial_delay

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                logger.info(f"Retrying in {delay:g} seconds...")
                self._sleep(delay)
                delay *= 2

            adapter = self._adapter_factory(self.config)
            logger.info(
                f"Connecting to {adapter.describe()} (attempt {attempt}/{self.max_attempts})"
            )
            try:
                adapter.connect()
            except DBConnectionError as e:
                last_error = e
                logger.warning(f"Connection attempt {attempt} failed: {e}")
                continue

            success(f"Connected to {adapter.describe()}")
            return adapter

        raise ConnectionExhaustedError(self.max_attempts, last_error)
