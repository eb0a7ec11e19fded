"""SQLite schema migrations for the tracking store.

The schema version lives in ``PRAGMA user_version``; each migration runs
in its own transaction together with the version bump.
"""

import sqlite3
from dataclasses import dataclass

import structlog

from stockwatch.store.errors import MigrationError


logger = structlog.get_logger()


@dataclass(frozen=True)
class Migration:
    """One schema step, identified by the version it produces."""

    version: int
    description: str
    statements: tuple[str, ...]


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Bucketed key/value records table",
        statements=(
            # A bucket exists while it has rows
            """
            CREATE TABLE IF NOT EXISTS records (
                bucket TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (bucket, key)
            )
            """,
        ),
    ),
]

CURRENT_VERSION = MIGRATIONS[-1].version


def get_migrations_to_apply(current_version: int) -> list[Migration]:
    """Migrations newer than the given version, oldest first."""
    return [m for m in MIGRATIONS if m.version > current_version]


class MigrationManager:
    """Brings a connection's schema up to CURRENT_VERSION."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._log = logger.bind(component="store", operation="migration")

    def get_current_version(self) -> int:
        """Read the schema version; 0 for a new database."""
        row = self._conn.execute("PRAGMA user_version").fetchone()
        return int(row[0])

    def apply_migrations(self) -> list[int]:
        """Apply all pending migrations.

        Returns:
            Versions applied, in order.

        Raises:
            MigrationError: If a migration fails; its changes are
                rolled back and later migrations are not attempted.
        """
        pending = get_migrations_to_apply(self.get_current_version())
        applied: list[int] = []

        for migration in pending:
            self._log.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                with self._conn:
                    self._conn.execute("BEGIN")
                    for statement in migration.statements:
                        self._conn.execute(statement)
                    # PRAGMA does not accept bound parameters
                    self._conn.execute(f"PRAGMA user_version = {migration.version:d}")
            except sqlite3.Error as e:
                self._log.error(
                    "migration_failed", version=migration.version, error=str(e)
                )
                raise MigrationError(migration.version, str(e)) from e
            applied.append(migration.version)

        return applied
