"""Product page scraping with bounded retries.

Fetches a page, selects one fragment with a CSS selector and reads it
either as an availability flag or as a price.
"""

from stockwatch.scraper.config import AvailabilityMode, ScrapeConfig
from stockwatch.scraper.constants import (
    DEFAULT_FIND_TEXT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_SECONDS,
    DEFAULT_SELECTOR,
    USER_AGENT,
)
from stockwatch.scraper.errors import (
    FetchError,
    NoPriceMatchedError,
    PriceParseError,
    ScrapeError,
)
from stockwatch.scraper.price import extract_price_token, parse_price
from stockwatch.scraper.scraper import Scraper


__all__ = [
    # Scraper
    "Scraper",
    # Config
    "AvailabilityMode",
    "ScrapeConfig",
    # Errors
    "FetchError",
    "NoPriceMatchedError",
    "PriceParseError",
    "ScrapeError",
    # Price parsing
    "extract_price_token",
    "parse_price",
    # Constants
    "DEFAULT_FIND_TEXT",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_SECONDS",
    "DEFAULT_SELECTOR",
    "USER_AGENT",
]
