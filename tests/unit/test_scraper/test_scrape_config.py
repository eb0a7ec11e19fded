"""Unit tests for scrape configuration."""

import pytest
from pydantic import ValidationError

from stockwatch.scraper.config import AvailabilityMode, ScrapeConfig
from stockwatch.scraper.constants import USER_AGENT


class TestScrapeConfig:
    """Tests for ScrapeConfig defaults and validation."""

    def test_default_values(self) -> None:
        """Test default scrape settings."""
        config = ScrapeConfig(url="https://shop.example/item")

        assert config.expected_status_code == 200
        assert config.selector == "#availability"
        assert config.find_text == "en stock."
        assert config.target_price == 0.0
        assert config.max_retries == 1
        assert config.retry_seconds == 1
        assert config.availability_mode == AvailabilityMode.CONTAINS
        assert config.user_agent == USER_AGENT

    def test_custom_values(self) -> None:
        """Test every option can be overridden."""
        config = ScrapeConfig(
            url="https://shop.example/item",
            expected_status_code=201,
            selector=".price",
            find_text="in stock",
            target_price=25.5,
            max_retries=5,
            retry_seconds=3,
            availability_mode=AvailabilityMode.SOLD_OUT,
        )

        assert config.expected_status_code == 201
        assert config.selector == ".price"
        assert config.find_text == "in stock"
        assert config.target_price == 25.5
        assert config.max_retries == 5
        assert config.retry_seconds == 3
        assert config.availability_mode == AvailabilityMode.SOLD_OUT

    @pytest.mark.parametrize("seconds", [0, -4])
    def test_non_positive_retry_seconds_keeps_default(self, seconds: int) -> None:
        """Test a non-positive delay falls back to the default."""
        config = ScrapeConfig(url="https://shop.example/item", retry_seconds=seconds)

        assert config.retry_seconds == 1

    def test_negative_max_retries_rejected(self) -> None:
        """Test max_retries must not be negative."""
        with pytest.raises(ValidationError):
            ScrapeConfig(url="https://shop.example/item", max_retries=-1)

    def test_empty_selector_rejected(self) -> None:
        """Test the selector must not be empty."""
        with pytest.raises(ValidationError):
            ScrapeConfig(url="https://shop.example/item", selector="")

    def test_config_is_frozen(self) -> None:
        """Test configuration cannot be mutated."""
        config = ScrapeConfig(url="https://shop.example/item")

        with pytest.raises(ValidationError):
            config.selector = ".other"  # type: ignore[misc]
