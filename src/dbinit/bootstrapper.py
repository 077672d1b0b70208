"""Startup orchestration: bring the database to the application's version.

The bootstrapper is a small state machine:

    START -> CONNECTED -> UNINITIALIZED -> VERSIONED -> READY -> MIGRATING -> DONE
                       \\-> VERSIONED --/

FAILED is reachable from every state. A database without a ledger table is
reset and placed under version control; a versioned database is advanced by
applying the migrations newer than its current version. A database ahead of
the application is rejected.
"""

from dataclasses import dataclass, field
from enum import Enum

from common.logger import get_logger
from dbinit.catalog import MigrationCatalog, MigrationUnit, application_version
from dbinit.connection import ConnectionManager
from dbinit.db import DatabaseAdapter, DatabaseError
from dbinit.errors import BootstrapError, SchemaError, VersionSkewError
from dbinit.ledger import VersionControlStore, VersionRecord
from dbinit.runner import MigrationRunner
from dbinit.versions import ZERO, Version

logger = get_logger(__name__)


class BootstrapState(str, Enum):
    """Phases of a bootstrap run."""

    START = "start"
    CONNECTED = "connected"
    UNINITIALIZED = "uninitialized"
    VERSIONED = "versioned"
    READY = "ready"
    MIGRATING = "migrating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BootstrapResult:
    """Outcome of a successful run."""

    initialized: bool
    database_version: Version
    application_version: Version
    applied: list[Version] = field(default_factory=list)

    @property
    def final_version(self) -> Version:
        return self.applied[-1] if self.applied else self.database_version


@dataclass
class BootstrapStatus:
    """Read-only view of where the database stands."""

    initialized: bool
    database_version: Version
    application_version: Version
    pending: list[MigrationUnit] = field(default_factory=list)
    history: list[VersionRecord] = field(default_factory=list)

    @property
    def is_skewed(self) -> bool:
        return self.application_version < self.database_version


class Bootstrapper:
    """Drives connection, catalog, ledger and runner through one startup run.

    The connection is owned by the bootstrapper for the duration of run() and
    passed explicitly to every component call.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        catalog: MigrationCatalog,
        store: VersionControlStore,
        runner: MigrationRunner | None = None,
    ):
        self.connection_manager = connection_manager
        self.catalog = catalog
        self.store = store
        self.runner = runner or MigrationRunner(store)
        self.state = BootstrapState.START
        self.failed_in: BootstrapState | None = None

    def _transition(self, state: BootstrapState) -> None:
        logger.debug(f"Bootstrap state: {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> BootstrapResult:
        """Bring the database up to the application version.

        Returns:
            Summary of what was done

        Raises:
            BootstrapError: On any unrecoverable failure; migrations committed
                before the failure stay applied
        """
        conn: DatabaseAdapter | None = None
        try:
            conn = self.connection_manager.connect()
            self._transition(BootstrapState.CONNECTED)

            units = self.catalog.discover()
            app_version = application_version(units)

            initialized = False
            if not self.store.is_initialized(conn):
                self._transition(BootstrapState.UNINITIALIZED)
                conn = self._initialize(conn)
                initialized = True
            else:
                logger.info("Database is already version controlled")

            self._transition(BootstrapState.VERSIONED)
            db_version = self.store.current_version(conn)
            logger.info(
                f"Database version: {db_version} | application version: {app_version}"
            )
            if app_version < db_version:
                raise VersionSkewError(app_version, db_version)
            self._transition(BootstrapState.READY)

            pending = [unit for unit in units if unit.version > db_version]
            self._transition(BootstrapState.MIGRATING)
            records = self.runner.apply_all(conn, pending)

            self._transition(BootstrapState.DONE)
            return BootstrapResult(
                initialized=initialized,
                database_version=db_version,
                application_version=app_version,
                applied=[record.version for record in records],
            )
        except BootstrapError:
            self.failed_in = self.state
            self._transition(BootstrapState.FAILED)
            raise
        finally:
            if conn is not None:
                conn.close()

    def _initialize(self, conn: DatabaseAdapter) -> DatabaseAdapter:
        """Reset the schema, reconnect and create the ledger table.

        Returns:
            The new connection; the one passed in is closed
        """
        logger.warning(
            f"Database is not version controlled, resetting {conn.describe()}"
        )
        try:
            conn.reset_schema()
        except DatabaseError as e:
            raise SchemaError(f"Failed to reset the database schema: {e}") from e
        finally:
            conn.close()

        # The reset invalidates the previous session
        conn = self.connection_manager.connect()
        try:
            self.store.create_table(conn)
        except BootstrapError:
            conn.close()
            raise
        logger.info("The database has been reset and is now version controlled")
        return conn

    def inspect(self) -> BootstrapStatus:
        """Report the database and application versions without changing anything.

        Raises:
            BootstrapError: If the database or the catalog cannot be read
        """
        units = self.catalog.discover()
        conn = self.connection_manager.connect()
        try:
            initialized = self.store.is_initialized(conn)
            history = self.store.history(conn) if initialized else []
            db_version = self.store.current_version(conn) if initialized else ZERO
        finally:
            conn.close()

        return BootstrapStatus(
            initialized=initialized,
            database_version=db_version,
            application_version=application_version(units),
            pending=[unit for unit in units if unit.version > db_version],
            history=history,
        )
