"""Domain-specific error types for the messaging module."""


class TransportError(Exception):
    """A message could not be delivered.

    Attributes:
        transport: Name of the transport that failed.
        status_code: HTTP status code from the API response, if any.
    """

    def __init__(self, message: str, transport: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.transport = transport
        self.status_code = status_code


class ConfigurationError(Exception):
    """No usable messaging transport is configured."""
