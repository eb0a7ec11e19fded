"""Constants for the scraper.

Defaults match what a freshly registered item is checked with when the
caller does not override them.
"""

# Default CSS selector for the availability message
DEFAULT_SELECTOR = "#availability"

# Default text compared against the selected fragment
DEFAULT_FIND_TEXT = "en stock."

DEFAULT_MAX_RETRIES = 1

DEFAULT_RETRY_SECONDS = 1

DEFAULT_TARGET_PRICE = 0.0

DEFAULT_EXPECTED_STATUS_CODE = 200

DEFAULT_TIMEOUT_SECONDS = 30.0

# Browser-like User-Agent; some stores reject unknown clients
USER_AGENT = (
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:84.0) Gecko/20100101 Firefox/84.0"
)

# First numeric run: digits, optional separator, optional trailing digits
PRICE_PATTERN = r"\d+[\.\,]?\d*"
