"""Exceptions for the tracking store.

Infrastructure failures (``StoreError``) are unrecoverable for the
process; the reconciliation job escalates them instead of retrying.
"""


class TrackingStoreError(Exception):
    """Base exception for all tracking store errors."""


class StoreError(TrackingStoreError):
    """Raised when a storage transaction fails.

    Attributes:
        operation: The store operation that failed.
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize the store error.

        Args:
            operation: The store operation that failed.
            message: Human-readable error message.
        """
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class StoreConnectionError(TrackingStoreError):
    """Raised when the database is used without an open connection."""

    def __init__(self, message: str = "Database not connected") -> None:
        """Initialize the connection error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class InvalidKeyError(TrackingStoreError):
    """Raised when a bucket name or key is empty."""

    def __init__(self, what: str) -> None:
        """Initialize the error.

        Args:
            what: Which argument was empty ("bucket" or "key").
        """
        self.what = what
        super().__init__(f"empty {what}")


class MigrationError(TrackingStoreError):
    """Raised when a schema migration fails."""

    def __init__(self, version: int, message: str) -> None:
        """Initialize the migration error.

        Args:
            version: The migration version that failed.
            message: Human-readable error message.
        """
        self.version = version
        super().__init__(f"Migration {version} failed: {message}")
