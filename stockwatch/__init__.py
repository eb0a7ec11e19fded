"""Product page tracking with restock and price drop notifications."""

__version__ = "0.1.0"
