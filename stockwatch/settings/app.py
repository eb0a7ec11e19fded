"""Application settings powered by Pydantic BaseSettings."""

import re
from datetime import timedelta
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockwatch.scraper.config import AvailabilityMode
from stockwatch.scraper.constants import (
    DEFAULT_EXPECTED_STATUS_CODE,
    DEFAULT_FIND_TEXT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_SECONDS,
    DEFAULT_SELECTOR,
    DEFAULT_TIMEOUT_SECONDS,
)


DEFAULT_PRICE_SELECTOR = "#priceblock_ourprice"

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
    "ms": "milliseconds",
}


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as "1h", "1h30m", "45s" or "90".

    A bare number is read as seconds.

    Args:
        value: Duration string.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the string is not a valid positive duration.
    """
    text = value.strip()
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        result = timedelta(seconds=float(text))
    else:
        parts = _DURATION_PART_RE.findall(text)
        if not parts or "".join(n + u for n, u in parts) != text:
            msg = f"Invalid duration: {value!r}"
            raise ValueError(msg)
        result = timedelta()
        for number, unit in parts:
            result += timedelta(**{_DURATION_UNITS[unit]: float(number)})

    if result <= timedelta():
        msg = f"Duration must be positive: {value!r}"
        raise ValueError(msg)
    return result


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKWATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = "stockwatch.db"

    # Messaging
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone: str | None = None
    telegram_token: str | None = None

    # Scraping
    expected_status_code: Annotated[int, Field(ge=100, le=599)] = (
        DEFAULT_EXPECTED_STATUS_CODE
    )
    max_retries: Annotated[int, Field(ge=0, le=100)] = DEFAULT_MAX_RETRIES
    retry_seconds: Annotated[int, Field(ge=0, le=3600)] = DEFAULT_RETRY_SECONDS
    request_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    availability_mode: AvailabilityMode = AvailabilityMode.CONTAINS
    price_selector: Annotated[str, Field(min_length=1)] = DEFAULT_PRICE_SELECTOR
    availability_selector: Annotated[str, Field(min_length=1)] = DEFAULT_SELECTOR
    availability_find_text: str = DEFAULT_FIND_TEXT

    # Scheduling
    price_interval: timedelta = timedelta(hours=1)
    availability_interval: timedelta = timedelta(minutes=1)
    max_workers: Annotated[int, Field(ge=1, le=256)] = 8
    strict_records: bool = False

    # Logging
    verbose: bool = False
    json_logs: bool = True

    @field_validator("price_interval", "availability_interval", mode="before")
    @classmethod
    def parse_interval(cls, v: object) -> object:
        """Accept duration strings such as "1h30m" for intervals."""
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @property
    def twilio_configured(self) -> bool:
        """Check whether all Twilio credentials are present."""
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone
        )

    @property
    def sender(self) -> str:
        """Sender identity passed to the messenger."""
        return self.twilio_phone or ""


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
