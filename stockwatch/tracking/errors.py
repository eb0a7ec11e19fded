"""Error types for tracked item records."""


class MalformedRecordError(Exception):
    """Raised when a stored record cannot be decoded into a tracked item.

    Attributes:
        bucket: Bucket the record was read from.
        key: Raw stored key.
        value: Raw stored value.
        reason: Why decoding failed.
    """

    def __init__(self, bucket: str, key: str, value: str, reason: str) -> None:
        """Initialize the error.

        Args:
            bucket: Bucket the record was read from.
            key: Raw stored key.
            value: Raw stored value.
            reason: Why decoding failed.
        """
        self.bucket = bucket
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(
            f"invalid record in bucket '{bucket}': {reason} "
            f"(key={key!r}, value={value!r})"
        )

    def to_dict(self) -> dict[str, str]:
        """Convert error to dictionary for logging."""
        return {
            "bucket": self.bucket,
            "key": self.key,
            "value": self.value,
            "reason": self.reason,
        }
