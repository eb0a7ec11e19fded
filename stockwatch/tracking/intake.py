"""Validation and registration of new tracked items."""

from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stockwatch.scraper.errors import PriceParseError
from stockwatch.scraper.price import parse_price
from stockwatch.settings.app import AppSettings
from stockwatch.tracking.models import RECORD_DELIMITER, ActionKind, TrackedItem


if TYPE_CHECKING:
    from stockwatch.store.store import TrackingStore


logger = structlog.get_logger()


class TrackRequest(BaseModel):
    """A request to start tracking a product page.

    Field names follow the JSON accepted by the intake API, so the
    channel is given as ``from``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    channel: str = Field(alias="from", min_length=1)
    url: str = Field(min_length=1)
    type: ActionKind
    price: str | None = None
    find_text: str | None = None
    selector: str | None = None

    @field_validator("channel", "url", "selector")
    @classmethod
    def reject_delimiter(cls, v: str | None) -> str | None:
        """Reject values that would corrupt the record encoding."""
        if v is not None and RECORD_DELIMITER in v:
            msg = f"must not contain '{RECORD_DELIMITER}'"
            raise ValueError(msg)
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"Invalid absolute URL: {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_price(self) -> "TrackRequest":
        """Require a positive target price for price requests."""
        if self.type != ActionKind.PRICE:
            return self
        if not self.price:
            msg = "price is required for price tracking"
            raise ValueError(msg)
        try:
            target = parse_price(self.price)
        except PriceParseError as e:
            msg = f"invalid price: {self.price}"
            raise ValueError(msg) from e
        if target <= 0:
            msg = f"price must be positive: {self.price}"
            raise ValueError(msg)
        return self

    def to_item(self, settings: AppSettings) -> TrackedItem:
        """Build the tracked item, filling defaults from settings.

        Args:
            settings: Application settings holding default selectors.

        Returns:
            TrackedItem ready to be stored.
        """
        if self.type == ActionKind.PRICE:
            selector = self.selector or settings.price_selector
            criterion = self.price or ""
        else:
            selector = self.selector or settings.availability_selector
            criterion = (
                self.find_text
                if self.find_text is not None
                else settings.availability_find_text
            )

        return TrackedItem(
            kind=self.type,
            channel=self.channel,
            url=self.url,
            selector=selector,
            criterion=criterion,
        )


def register(
    store: "TrackingStore",
    request: TrackRequest,
    settings: AppSettings,
) -> TrackedItem:
    """Persist a tracked item for a validated request.

    An existing item for the same channel and URL is overwritten.

    Args:
        store: Tracking store.
        request: Validated track request.
        settings: Application settings for defaults.

    Returns:
        The stored TrackedItem.
    """
    item = request.to_item(settings)
    logger.debug(
        "adding_product_to_database",
        component="intake",
        kind=item.kind.value,
        channel=item.channel,
        url=item.url,
        selector=item.selector,
        criterion=item.criterion,
    )
    store.save(item.key, item.value, item.kind.bucket)
    return item
