"""Product page scraper with fixed-delay retries."""

import time
from collections.abc import Callable

import httpx
import structlog
from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from stockwatch.scraper.config import AvailabilityMode, ScrapeConfig
from stockwatch.scraper.errors import (
    FetchError,
    NoPriceMatchedError,
    PriceParseError,
    ScrapeError,
)
from stockwatch.scraper.price import parse_price


logger = structlog.get_logger()


class Scraper:
    """Fetches a product page and interprets one CSS-selected fragment.

    The fragment is read as either an availability flag or a price.
    Failed requests and unexpected status codes are retried with a fixed
    delay; a check makes at most ``max_retries + 1`` HTTP attempts.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the scraper.

        Args:
            config: Scrape configuration.
            transport: Optional httpx transport (used by tests).
            sleep: Function used to wait between attempts.
            log: Diagnostic sink; defaults to the module logger.
        """
        self._config = config
        self._transport = transport
        self._sleep = sleep
        self._log = (log or logger).bind(
            component="scraper",
            url=config.url,
            selector=config.selector,
        )

    @property
    def config(self) -> ScrapeConfig:
        """Get the scrape configuration."""
        return self._config

    def fetch_selected_text(self) -> str:
        """Fetch the page and return the text of the first selector match.

        Returns:
            Text content of the first matching element, or an empty
            string when nothing matches.

        Raises:
            FetchError: If every attempt errored or returned an
                unexpected status code.
            ScrapeError: If the selector is not valid CSS.
        """
        body = self._fetch_body()

        soup = BeautifulSoup(body, "html.parser")
        try:
            element = soup.select_one(self._config.selector)
        except SelectorSyntaxError as e:
            msg = f"invalid CSS selector {self._config.selector!r}: {e}"
            raise ScrapeError(msg, url=self._config.url) from e

        text = element.get_text() if element is not None else ""
        self._log.debug("found_text", text=text)
        return text

    def is_available(self) -> bool:
        """Check whether the product is available.

        Both texts are compared stripped and lowercased. An empty
        fragment never counts as available.

        Returns:
            True if the product is available.

        Raises:
            ScrapeError: If the page could not be fetched.
        """
        text = _normalize(self.fetch_selected_text())
        find_text = _normalize(self._config.find_text)

        if not text:
            return False

        if self._config.availability_mode == AvailabilityMode.SOLD_OUT:
            return text != find_text
        return find_text in text

    def is_price_below(self) -> bool:
        """Check whether the page price is strictly below the target.

        Returns:
            True if ``target_price > page price``.

        Raises:
            NoPriceMatchedError: If the selector yields no text.
            PriceParseError: If the text holds no parsable price.
            ScrapeError: If the page could not be fetched.
        """
        text = self.fetch_selected_text()
        if text == "":
            raise NoPriceMatchedError("no price matched", url=self._config.url)

        try:
            price = parse_price(text)
        except PriceParseError as e:
            e.url = self._config.url
            raise

        self._log.debug(
            "price_parsed",
            price=price,
            target_price=self._config.target_price,
        )
        return self._config.target_price > price

    def _fetch_body(self) -> str:
        """Execute the GET with retries.

        Returns:
            Response body text of the first attempt with the expected
            status code.
        """
        config = self._config
        headers = {"User-Agent": config.user_agent}
        attempts = config.max_retries + 1
        last_error: Exception | None = None
        last_status: int | None = None

        with httpx.Client(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for attempt in range(attempts):
                if attempt > 0:
                    self._log.debug(
                        "retry_attempt",
                        attempt=attempt,
                        delay_seconds=config.retry_seconds,
                        max_retries=config.max_retries,
                    )
                    self._sleep(config.retry_seconds)

                try:
                    response = client.get(config.url, headers=headers)
                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    last_error = e
                    last_status = None
                    self._log.debug("request_failed", attempt=attempt, error=str(e))
                    continue

                if response.status_code == config.expected_status_code:
                    self._log.debug(
                        "fetch_complete",
                        status_code=response.status_code,
                        attempts=attempt + 1,
                    )
                    return response.text

                last_error = None
                last_status = response.status_code
                self._log.debug(
                    "unexpected_status_code",
                    attempt=attempt,
                    status_code=response.status_code,
                    expected_status_code=config.expected_status_code,
                )

        if last_error is not None:
            raise FetchError(
                f"request failed after {attempts} attempts: {last_error}",
                url=config.url,
                expected_status_code=config.expected_status_code,
                attempts=attempts,
                cause=last_error,
            ) from last_error

        raise FetchError(
            f"response status code: {last_status}, "
            f"expected: {config.expected_status_code}",
            url=config.url,
            status_code=last_status,
            expected_status_code=config.expected_status_code,
            attempts=attempts,
        )


def _normalize(text: str) -> str:
    return text.strip().lower()
