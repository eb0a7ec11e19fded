"""Chat delivery through the Telegram Bot API."""

import httpx
import structlog

from stockwatch.messaging.errors import TransportError


logger = structlog.get_logger()

_API_BASE = "https://api.telegram.org"

_TRANSPORT_NAME = "telegram"


class TelegramMessenger:
    """Sends messages to Telegram chats through a bot."""

    def __init__(
        self,
        token: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the messenger.

        Args:
            token: Bot token.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).

        Raises:
            ValueError: If the token is empty.
        """
        if not token:
            msg = "Telegram token must not be empty"
            raise ValueError(msg)
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._log = logger.bind(component="messaging", transport=_TRANSPORT_NAME)

    def send_message(self, title: str, body: str, sender: str, destination: str) -> None:  # noqa: ARG002
        """Send a chat message to the chat id given as destination.

        Raises:
            TransportError: If the destination is not a chat id, on
                network failure, or when the API rejects the message.
        """
        try:
            chat_id = int(destination)
        except ValueError as exc:
            msg = f"Invalid Telegram chat id: {destination!r}"
            raise TransportError(msg, _TRANSPORT_NAME) from exc

        self._log.debug("sending_chat_message", chat_id=chat_id)
        url = f"{_API_BASE}/bot{self._token}/sendMessage"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    url,
                    json={"chat_id": chat_id, "text": f"{title}\n\n{body}"},
                )
        except httpx.HTTPError as exc:
            msg = f"Network error when sending Telegram message: {exc}"
            raise TransportError(msg, _TRANSPORT_NAME) from exc

        if not response.is_success:
            msg = f"Telegram API error. status: {response.status_code}"
            raise TransportError(msg, _TRANSPORT_NAME, response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            msg = "Telegram API returned a non-JSON response"
            raise TransportError(msg, _TRANSPORT_NAME, response.status_code) from exc
        if not isinstance(data, dict):
            msg = f"Telegram API returned an unexpected response: {data!r}"
            raise TransportError(msg, _TRANSPORT_NAME, response.status_code)
        if not data.get("ok", False):
            msg = f"Telegram API error: {data.get('description', 'unknown')}"
            raise TransportError(msg, _TRANSPORT_NAME, response.status_code)
