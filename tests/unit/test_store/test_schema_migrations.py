"""Unit tests for tracking store schema migrations."""

import sqlite3
from collections.abc import Generator

import pytest

from stockwatch.store.errors import MigrationError
from stockwatch.store.migrations import (
    CURRENT_VERSION,
    MIGRATIONS,
    Migration,
    MigrationManager,
    get_migrations_to_apply,
)


class TestMigrationList:
    """Tests for the migration list."""

    def test_migrations_in_order(self) -> None:
        """Test migrations are in ascending version order."""
        versions = [m.version for m in MIGRATIONS]
        assert versions == sorted(versions)

    def test_current_version_matches_latest_migration(self) -> None:
        """Test current version matches the latest migration."""
        assert MIGRATIONS[-1].version == CURRENT_VERSION

    def test_pending_from_zero(self) -> None:
        """Test every migration is pending on a new database."""
        assert get_migrations_to_apply(0) == MIGRATIONS

    def test_nothing_pending_at_current(self) -> None:
        """Test no migrations are pending at the current version."""
        assert get_migrations_to_apply(CURRENT_VERSION) == []


class TestMigrationManager:
    """Tests for MigrationManager."""

    @pytest.fixture
    def conn(self) -> Generator[sqlite3.Connection]:
        """Create an in-memory database."""
        conn = sqlite3.connect(":memory:")
        yield conn
        conn.close()

    def test_failed_migration_rolls_back(
        self, conn: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a failing step leaves neither tables nor a version behind."""
        broken = [
            Migration(
                version=1,
                description="half broken",
                statements=("CREATE TABLE ok (id INTEGER)", "CREATE TABLE ("),
            )
        ]
        monkeypatch.setattr("stockwatch.store.migrations.MIGRATIONS", broken)
        manager = MigrationManager(conn)

        with pytest.raises(MigrationError):
            manager.apply_migrations()

        assert manager.get_current_version() == 0
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE name='ok'"
        ).fetchone()
        assert row is None

    def test_new_database_is_version_zero(self, conn: sqlite3.Connection) -> None:
        """Test an empty database reports version 0."""
        assert MigrationManager(conn).get_current_version() == 0

    def test_apply_creates_records_table(self, conn: sqlite3.Connection) -> None:
        """Test applying migrations creates the records table."""
        manager = MigrationManager(conn)

        applied = manager.apply_migrations()

        assert applied == [m.version for m in MIGRATIONS]
        assert manager.get_current_version() == CURRENT_VERSION
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='records'"
        ).fetchone()
        assert row is not None

    def test_apply_is_idempotent(self, conn: sqlite3.Connection) -> None:
        """Test a second run applies nothing."""
        manager = MigrationManager(conn)
        manager.apply_migrations()

        assert manager.apply_migrations() == []

    def test_failed_migration_raises(
        self, conn: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test broken SQL raises MigrationError with its version."""
        broken = [
            Migration(version=1, description="broken", statements=("CREATE TABLE (",))
        ]
        monkeypatch.setattr("stockwatch.store.migrations.MIGRATIONS", broken)

        with pytest.raises(MigrationError) as exc_info:
            MigrationManager(conn).apply_migrations()

        assert exc_info.value.version == 1
