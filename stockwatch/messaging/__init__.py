"""Notification transports behind a single Messenger protocol."""

from stockwatch.messaging.errors import ConfigurationError, TransportError
from stockwatch.messaging.factory import create_messenger
from stockwatch.messaging.protocols import Messenger
from stockwatch.messaging.telegram import TelegramMessenger
from stockwatch.messaging.twilio import TwilioMessenger


__all__ = [
    "ConfigurationError",
    "Messenger",
    "TelegramMessenger",
    "TransportError",
    "TwilioMessenger",
    "create_messenger",
]
