"""Price extraction from free text."""

import re

from stockwatch.scraper.constants import PRICE_PATTERN
from stockwatch.scraper.errors import PriceParseError


_PRICE_RE = re.compile(PRICE_PATTERN)


def extract_price_token(text: str) -> str:
    """Return the first numeric run in text with ',' normalized to '.'.

    Currency symbols and surrounding words are ignored. Only the first
    run counts, so "£995.10 was £1200" yields "995.10".

    Args:
        text: Free text containing a price.

    Returns:
        The normalized token, or an empty string if no digits are found.
    """
    match = _PRICE_RE.search(text)
    if match is None:
        return ""
    return match.group(0).replace(",", ".")


def parse_price(text: str) -> float:
    """Parse the first price found in text.

    A separator without digits on one side is tolerated: "99," and ",99"
    both parse as 99.0.

    Args:
        text: Free text containing a price.

    Returns:
        The price as a float.

    Raises:
        PriceParseError: If no numeric token can be parsed.
    """
    token = extract_price_token(text)
    try:
        return float(token)
    except ValueError as e:
        msg = f"error when converting price from string to float: {text!r}"
        raise PriceParseError(msg, text=text) from e
