"""Tracked item model and its store record encoding."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from stockwatch.scraper.errors import PriceParseError
from stockwatch.scraper.price import parse_price
from stockwatch.tracking.errors import MalformedRecordError


# Separator between the parts of a stored key or value
RECORD_DELIMITER = "|"


class ActionKind(str, Enum):
    """What a tracked item waits for.

    The value doubles as the store bucket name.
    """

    PRICE = "price"
    AVAILABILITY = "availability"

    @property
    def bucket(self) -> str:
        """Store bucket holding items of this kind."""
        return self.value


class TrackedItem(BaseModel):
    """A product page tracked for one channel.

    The criterion is a target price for PRICE items and the match text
    for AVAILABILITY items.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ActionKind
    channel: Annotated[str, Field(min_length=1, description="Destination id")]
    url: Annotated[str, Field(min_length=1, description="Product page URL")]
    selector: Annotated[str, Field(min_length=1, description="CSS selector")]
    criterion: str = Field(default="", description="Target price or match text")

    @property
    def key(self) -> str:
        """Encoded store key."""
        return encode_key(self.channel, self.url)

    @property
    def value(self) -> str:
        """Encoded store value."""
        return encode_value(self.selector, self.criterion)

    @property
    def target_price(self) -> float:
        """Target price parsed from the criterion.

        Raises:
            PriceParseError: If the criterion holds no price.
        """
        return parse_price(self.criterion)


def encode_key(channel: str, url: str) -> str:
    """Encode a channel and URL into a store key."""
    return f"{channel}{RECORD_DELIMITER}{url}"


def encode_value(selector: str, criterion: str) -> str:
    """Encode a selector and criterion into a store value."""
    return f"{selector}{RECORD_DELIMITER}{criterion}"


def decode_record(kind: ActionKind, key: str, value: str) -> TrackedItem:
    """Decode a raw store record into a tracked item.

    Key and value are each split on the first delimiter.

    Args:
        kind: Action kind of the bucket the record came from.
        key: Raw stored key ("channel|url").
        value: Raw stored value ("selector|criterion").

    Returns:
        The decoded TrackedItem.

    Raises:
        MalformedRecordError: If either side lacks two parts, a required
            part is empty, or a price criterion does not parse.
    """
    keys = key.split(RECORD_DELIMITER, 1)
    values = value.split(RECORD_DELIMITER, 1)
    if len(keys) < 2 or len(values) < 2:  # noqa: PLR2004
        raise MalformedRecordError(
            kind.bucket, key, value, "expected two parts in key and value"
        )

    channel, url = keys
    selector, criterion = values
    if not channel or not url:
        raise MalformedRecordError(kind.bucket, key, value, "empty channel or url")
    if not selector:
        raise MalformedRecordError(kind.bucket, key, value, "empty selector")

    if kind == ActionKind.PRICE:
        try:
            parse_price(criterion)
        except PriceParseError as e:
            raise MalformedRecordError(
                kind.bucket, key, value, f"invalid target price {criterion!r}"
            ) from e

    return TrackedItem(
        kind=kind,
        channel=channel,
        url=url,
        selector=selector,
        criterion=criterion,
    )
