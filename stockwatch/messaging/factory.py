"""Messenger selection from settings."""

import structlog

from stockwatch.messaging.errors import ConfigurationError
from stockwatch.messaging.protocols import Messenger
from stockwatch.messaging.telegram import TelegramMessenger
from stockwatch.messaging.twilio import TwilioMessenger
from stockwatch.settings.app import AppSettings


logger = structlog.get_logger()


def create_messenger(settings: AppSettings) -> Messenger:
    """Create the messenger configured in settings.

    Twilio is preferred when its SID, token and phone are all set;
    otherwise Telegram is used when a bot token is set.

    Args:
        settings: Application settings.

    Returns:
        A Messenger implementation.

    Raises:
        ConfigurationError: If neither transport is configured.
    """
    log = logger.bind(component="messaging")

    if settings.twilio_configured:
        log.info("messenger_selected", transport="twilio")
        return TwilioMessenger(
            account_sid=settings.twilio_account_sid or "",
            auth_token=settings.twilio_auth_token or "",
        )

    if settings.telegram_token:
        log.info("messenger_selected", transport="telegram")
        return TelegramMessenger(token=settings.telegram_token)

    msg = "at least one of twilio or telegram configurations is required"
    raise ConfigurationError(msg)
