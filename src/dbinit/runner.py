"""Migration runner for database schema updates."""

from common.logger import get_logger
from dbinit.catalog import MigrationUnit
from dbinit.db import DatabaseAdapter, DatabaseError
from dbinit.errors import MigrationError, MigrationReadError, WriteError
from dbinit.ledger import VersionControlStore, VersionRecord

logger = get_logger(__name__)


class MigrationRunner:
    """Applies migration units and records them in the ledger.

    A migration and its ledger row are committed together: if either fails,
    the whole transaction is rolled back and nothing about the attempt is
    persisted.
    """

    def __init__(self, store: VersionControlStore):
        """Initialize migration runner.

        Args:
            store: Ledger the applied versions are recorded in
        """
        self.store = store

    def apply(self, conn: DatabaseAdapter, unit: MigrationUnit) -> VersionRecord:
        """Apply a single migration.

        Args:
            conn: Open database adapter
            unit: Migration to apply

        Returns:
            The ledger record written for the migration

        Raises:
            MigrationReadError: If the SQL file cannot be read or is not UTF-8
            MigrationError: If the SQL or the ledger insert fails
        """
        try:
            sql = unit.sql_text
        except (OSError, UnicodeDecodeError) as e:
            raise MigrationReadError(unit.version, e) from e

        logger.info(f"Applying migration {unit.version} ({unit.name})")

        try:
            conn.begin()
        except DatabaseError as e:
            raise MigrationError(unit.version, e) from e

        try:
            conn.execute_script(sql)
            record = self.store.record(conn, unit, sql, succeeded=True)
            conn.commit()
        except (DatabaseError, WriteError) as e:
            self._rollback(conn, unit)
            logger.error(f"✗ Failed to apply migration {unit.version}: {e}")
            raise MigrationError(unit.version, e) from e

        logger.info(f"✓ Applied migration {unit.version}")
        return record

    def apply_all(self, conn: DatabaseAdapter, units: list[MigrationUnit]) -> list[VersionRecord]:
        """Apply migrations in order, stopping at the first failure.

        Migrations committed before a failure stay applied.

        Returns:
            Records of the applied migrations
        """
        if not units:
            logger.info("No pending migrations")
            return []

        logger.info(f"Found {len(units)} pending migration(s)")

        return [self.apply(conn, unit) for unit in units]

    def _rollback(self, conn: DatabaseAdapter, unit: MigrationUnit) -> None:
        try:
            conn.rollback()
        except DatabaseError as e:
            # The original failure is what gets reported
            logger.warning(f"Rollback after failed migration {unit.version} also failed: {e}")
