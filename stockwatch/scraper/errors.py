"""Error types for the scraper."""


class ScrapeError(Exception):
    """Base exception for scraping failures.

    All scrape failures are recoverable for a single item: the caller
    abandons the current check and retries on the next pass.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize the scrape error.

        Args:
            message: Human-readable error message.
            url: URL being scraped, if known.
        """
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "url": self.url,
        }


class FetchError(ScrapeError):
    """Raised when a page cannot be fetched after all retries.

    Carries either the underlying transport exception (as ``__cause__``
    and ``cause``) or the status code mismatch of the final attempt.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        expected_status_code: int | None = None,
        attempts: int = 1,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            message: Human-readable error message.
            url: URL that failed.
            status_code: Status code of the last response, if any.
            expected_status_code: Status code that was required.
            attempts: Number of HTTP attempts made.
            cause: Underlying exception of the last attempt, if any.
        """
        super().__init__(message, url)
        self.status_code = status_code
        self.expected_status_code = expected_status_code
        self.attempts = attempts
        self.cause = cause

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging."""
        data = super().to_dict()
        data.update(
            status_code=self.status_code,
            expected_status_code=self.expected_status_code,
            attempts=self.attempts,
        )
        return data


class NoPriceMatchedError(ScrapeError):
    """Raised when the selector yields no text for a price check."""


class PriceParseError(ScrapeError):
    """Raised when the selected text holds no parsable price."""

    def __init__(self, message: str, text: str, url: str | None = None) -> None:
        """Initialize the parse error.

        Args:
            message: Human-readable error message.
            text: The text that failed to parse.
            url: URL being scraped, if known.
        """
        super().__init__(message, url)
        self.text = text
