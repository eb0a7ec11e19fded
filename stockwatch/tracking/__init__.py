"""Tracked items, their store encoding and intake."""

from stockwatch.tracking.errors import MalformedRecordError
from stockwatch.tracking.intake import TrackRequest, register
from stockwatch.tracking.models import (
    RECORD_DELIMITER,
    ActionKind,
    TrackedItem,
    decode_record,
    encode_key,
    encode_value,
)


__all__ = [
    "RECORD_DELIMITER",
    "ActionKind",
    "MalformedRecordError",
    "TrackRequest",
    "TrackedItem",
    "decode_record",
    "encode_key",
    "encode_value",
    "register",
]
