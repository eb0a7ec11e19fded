"""SQLite tracking store implementation."""

import sqlite3
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

import structlog

from stockwatch.store.errors import (
    InvalidKeyError,
    MigrationError,
    StoreConnectionError,
    StoreError,
)
from stockwatch.store.metrics import StoreMetrics, TransactionContext
from stockwatch.store.migrations import CURRENT_VERSION, MigrationManager


logger = structlog.get_logger()


class TrackingStore:
    """Bucketed key/value store backed by SQLite.

    Each bucket is a separate key space. Every public call runs in its
    own transaction; calls are serialized so that one store can be
    shared by worker threads.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the tracking store.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(component="store", db_path=str(self._db_path))

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open connection to database and apply migrations.

        Creates the database file and parent directories if they don't
        exist.

        Raises:
            StoreError: If the database cannot be opened.
            MigrationError: If the schema cannot be brought up to date.
        """
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._log.info("connecting_to_database")

        try:
            conn = sqlite3.connect(
                str(self._db_path),
                timeout=1.0,
                check_same_thread=False,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error as e:
            raise StoreError("connect", str(e)) from e

        migration_mgr = MigrationManager(conn)
        old_version = migration_mgr.get_current_version()
        try:
            applied = migration_mgr.apply_migrations()
        except MigrationError:
            conn.close()
            raise
        self._conn = conn

        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._log.info("database_closed")

    def __enter__(self) -> "TrackingStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        """Ensure database is connected.

        Returns:
            The database connection.

        Raises:
            StoreConnectionError: If not connected.
        """
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(
        self, operation: str
    ) -> Iterator[tuple[sqlite3.Connection, TransactionContext]]:
        """Context manager for transactions with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            The connection and a transaction context.

        Raises:
            StoreError: If the transaction fails.
        """
        with self._lock:
            conn = self._ensure_connected()
            tx_id = str(uuid.uuid4())[:8]
            start_ns = time.perf_counter_ns()
            ctx = TransactionContext(
                tx_id=tx_id, start_time_ns=start_ns, operation=operation
            )

            try:
                yield conn, ctx
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                self._metrics.record_failure(operation)
                self._log.error(
                    "transaction_failed",
                    tx_id=tx_id,
                    op=operation,
                    error=str(e),
                )
                raise StoreError(operation, str(e)) from e
            except Exception:
                conn.rollback()
                self._metrics.record_failure(operation)
                raise

            duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            self._metrics.record_commit(operation, duration_ms, ctx.affected_rows)
            self._log.debug(
                "transaction_complete",
                tx_id=tx_id,
                op=operation,
                affected_rows=ctx.affected_rows,
                duration_ms=round(duration_ms, 2),
            )

    def save(self, key: str, value: str, bucket: str) -> None:
        """Save a key/value pair in a bucket, overwriting any old value.

        The bucket is created implicitly.

        Args:
            key: Record key.
            value: Record value (may be empty).
            bucket: Bucket name.

        Raises:
            InvalidKeyError: If bucket or key is empty.
        """
        if not bucket:
            raise InvalidKeyError("bucket")
        if not key:
            raise InvalidKeyError("key")

        with self._transaction("save") as (conn, ctx):
            cursor = conn.execute(
                """
                INSERT INTO records (bucket, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(bucket, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (bucket, key, value, datetime.now(UTC).isoformat()),
            )
            ctx.add_affected_rows(cursor.rowcount)

    def get(self, key: str, bucket: str) -> str:
        """Get the value stored under a key.

        Args:
            key: Record key.
            bucket: Bucket name.

        Returns:
            The value, or an empty string if the key or bucket is absent.
        """
        with self._transaction("get") as (conn, _):
            row = conn.execute(
                "SELECT value FROM records WHERE bucket = ? AND key = ?",
                (bucket, key),
            ).fetchone()

        if row is None:
            self._log.debug("key_not_found", bucket=bucket, key=key)
            return ""
        value: str = row[0]
        return value

    def get_all(self, bucket: str) -> dict[str, str]:
        """Get every key/value pair of a bucket.

        Args:
            bucket: Bucket name.

        Returns:
            Mapping of key to value; empty if the bucket is absent.
        """
        self._log.debug("getting_all_elements_in_bucket", bucket=bucket)
        with self._transaction("get_all") as (conn, _):
            rows = conn.execute(
                "SELECT key, value FROM records WHERE bucket = ?",
                (bucket,),
            ).fetchall()

        return {key: value for key, value in rows}

    def delete(self, key: str, bucket: str) -> None:
        """Delete a key from a bucket.

        Missing keys and buckets are ignored.

        Args:
            key: Record key.
            bucket: Bucket name.
        """
        with self._transaction("delete") as (conn, ctx):
            cursor = conn.execute(
                "DELETE FROM records WHERE bucket = ? AND key = ?",
                (bucket, key),
            )
            ctx.add_affected_rows(cursor.rowcount)

        if ctx.affected_rows == 0:
            self._log.debug("delete_missing_key", bucket=bucket, key=key)

    def list_buckets(self) -> list[str]:
        """List buckets that currently hold records.

        Returns:
            Sorted bucket names.
        """
        with self._transaction("list_buckets") as (conn, _):
            rows = conn.execute(
                "SELECT DISTINCT bucket FROM records ORDER BY bucket"
            ).fetchall()
        return [row[0] for row in rows]

    def count(self, bucket: str) -> int:
        """Count records in a bucket.

        Args:
            bucket: Bucket name.

        Returns:
            Number of records.
        """
        with self._transaction("count") as (conn, _):
            row = conn.execute(
                "SELECT COUNT(*) FROM records WHERE bucket = ?",
                (bucket,),
            ).fetchone()
        return int(row[0])
