"""Shared constants for dbinit.

For environment-based configuration (database settings, etc.), use the env module:
    from common.env import env
    db_type = env.database_type()
"""

from pathlib import Path

# Filesystem defaults
DEFAULT_MIGRATIONS_DIR = Path("./sql/migrations")
DEFAULT_DATABASE_PATH = Path("./data/app.db")
MIGRATION_EXTENSIONS: tuple[str, ...] = (".sql",)

# Ledger
DEFAULT_LEDGER_TABLE = "version_control"
# Width of the ledger's version column
MAX_VERSION_LENGTH = 64

# Connection retry: waits of 1, 2, 4, ... seconds between attempts
MAX_CONNECT_ATTEMPTS = 10
INITIAL_RETRY_DELAY = 1.0
