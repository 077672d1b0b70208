"""Discovery of migration units on disk."""

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

from common.constants import MAX_VERSION_LENGTH
from common.logger import get_logger
from dbinit.errors import DiscoveryError, DuplicateVersionError, MalformedVersionError
from dbinit.versions import Version, max_version

logger = get_logger(__name__)


@dataclass(frozen=True)
class MigrationUnit:
    """One versioned SQL change script.

    The SQL text is read from disk the first time sql_text is accessed, so
    discovery never touches file contents.
    """

    version: Version
    source_path: Path

    @cached_property
    def sql_text(self) -> str:
        return self.source_path.read_text(encoding="utf-8")

    @property
    def name(self) -> str:
        return self.source_path.name


class MigrationCatalog:
    """Discovers migration files in a directory and orders them by version."""

    def __init__(self, directory: str | Path, extensions: tuple[str, ...] = (".sql",)):
        """Initialize catalog.

        Args:
            directory: Directory holding <version>.sql files
            extensions: Recognized file suffixes (case-insensitive)
        """
        self.directory = Path(directory)
        self.extensions = tuple(ext.lower() for ext in extensions)

    def discover(self) -> list[MigrationUnit]:
        """List migration units in version order.

        Returns:
            Units sorted by version; empty if no file matches

        Raises:
            DiscoveryError: If the directory is missing or unreadable
            MalformedVersionError: If a filename has an empty or overlong stem
            DuplicateVersionError: If two files share a version token
        """
        if not self.directory.is_dir():
            raise DiscoveryError(f"Migrations directory not found: {self.directory}")

        try:
            entries = sorted(self.directory.iterdir())
        except OSError as e:
            raise DiscoveryError(f"Cannot list migrations directory {self.directory}: {e}") from e

        units: dict[Version, MigrationUnit] = {}
        for path in entries:
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                logger.debug(f"Ignoring {path.name}")
                continue

            token = path.stem.strip()
            if not token:
                raise MalformedVersionError(f"Cannot parse a version from filename: {path.name}")
            if len(token) > MAX_VERSION_LENGTH:
                raise MalformedVersionError(
                    f"Version in {path.name} is longer than {MAX_VERSION_LENGTH} characters"
                )

            version = Version(token)
            if version in units:
                raise DuplicateVersionError(
                    f"Version {version} is defined by both "
                    f"{units[version].name} and {path.name}"
                )
            units[version] = MigrationUnit(version=version, source_path=path)

        return sorted(units.values(), key=lambda unit: unit.version)


def application_version(units: list[MigrationUnit]) -> Version:
    """Highest version known to the catalog, or ZERO if it is empty."""
    return max_version(unit.version for unit in units)
