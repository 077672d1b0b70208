"""Error taxonomy for the bootstrap process.

Every failure detected by a component is raised as a subclass of
BootstrapError, so callers can tell failure kinds apart by type instead of
by message text.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dbinit.versions import Version


class BootstrapError(Exception):
    """Base exception for all bootstrap failures."""

    pass


class ConfigurationError(BootstrapError):
    """Connection parameters or identifiers are missing or invalid."""

    pass


class ConnectionExhaustedError(BootstrapError):
    """The database could not be reached within the retry budget."""

    def __init__(self, attempts: int, last_error: Exception | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Connection failed after {attempts} attempts: {last_error}")


class SchemaError(BootstrapError):
    """DDL against the ledger or the target schema failed."""

    pass


class WriteError(BootstrapError):
    """A ledger record could not be written."""

    pass


class DiscoveryError(BootstrapError):
    """The migrations directory cannot be turned into a catalog."""

    pass


class MalformedVersionError(DiscoveryError):
    """A migration filename does not yield a version token."""

    pass


class DuplicateVersionError(DiscoveryError):
    """Two migration files share the same version token."""

    pass


class VersionSkewError(BootstrapError):
    """The database was advanced by a newer application build."""

    def __init__(self, application_version: "Version", database_version: "Version"):
        self.application_version = application_version
        self.database_version = database_version
        super().__init__(
            f"Application version {application_version} is behind "
            f"database version {database_version}"
        )


class MigrationError(BootstrapError):
    """A migration unit failed to apply."""

    def __init__(self, version: "Version", cause: Exception):
        self.version = version
        self.cause = cause
        super().__init__(f"Migration {version} failed: {cause}")


class MigrationReadError(MigrationError):
    """The SQL file of a migration unit could not be read."""

    pass
