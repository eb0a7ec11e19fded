"""Configuration model for a single scrape."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockwatch.scraper.constants import (
    DEFAULT_EXPECTED_STATUS_CODE,
    DEFAULT_FIND_TEXT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_SECONDS,
    DEFAULT_SELECTOR,
    DEFAULT_TARGET_PRICE,
    DEFAULT_TIMEOUT_SECONDS,
    USER_AGENT,
)


class AvailabilityMode(str, Enum):
    """How the selected text is interpreted as availability.

    - CONTAINS: available when the text contains the find text
    - SOLD_OUT: available when the text differs from the sold-out marker
    """

    CONTAINS = "contains"
    SOLD_OUT = "sold_out"


class ScrapeConfig(BaseModel):
    """Immutable settings for scraping one product page."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: Annotated[str, Field(min_length=1, description="Product page URL")]
    expected_status_code: Annotated[int, Field(ge=100, le=599)] = (
        DEFAULT_EXPECTED_STATUS_CODE
    )
    selector: Annotated[str, Field(min_length=1)] = DEFAULT_SELECTOR
    find_text: str = DEFAULT_FIND_TEXT
    target_price: float = DEFAULT_TARGET_PRICE
    max_retries: Annotated[int, Field(ge=0, le=100)] = DEFAULT_MAX_RETRIES
    retry_seconds: int = DEFAULT_RETRY_SECONDS
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    availability_mode: AvailabilityMode = AvailabilityMode.CONTAINS
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = USER_AGENT

    @field_validator("retry_seconds", mode="before")
    @classmethod
    def keep_default_delay(cls, v: object) -> object:
        """Fall back to the default delay for non-positive values."""
        if isinstance(v, int) and v <= 0:
            return DEFAULT_RETRY_SECONDS
        return v
