"""SMS delivery through the Twilio REST API."""

import httpx
import structlog

from stockwatch.messaging.errors import TransportError


logger = structlog.get_logger()

_API_BASE = "https://api.twilio.com/2010-04-01"

_TRANSPORT_NAME = "twilio"


class TwilioMessenger:
    """Sends messages as SMS through Twilio."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the messenger.

        Args:
            account_sid: Twilio account SID.
            auth_token: Twilio auth token.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._timeout = timeout
        self._transport = transport
        self._log = logger.bind(component="messaging", transport=_TRANSPORT_NAME)

    def send_message(self, title: str, body: str, sender: str, destination: str) -> None:
        """Send an SMS with the title and body separated by a blank line.

        Raises:
            TransportError: On network failure or an API error response.
        """
        self._log.debug("sending_sms", destination=destination)
        url = f"{_API_BASE}/Accounts/{self._account_sid}/Messages.json"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    url,
                    auth=(self._account_sid, self._auth_token),
                    data={"From": sender, "To": destination, "Body": f"{title}\n\n{body}"},
                )
        except httpx.HTTPError as exc:
            msg = f"Network error when sending SMS: {exc}"
            raise TransportError(msg, _TRANSPORT_NAME) from exc

        if not response.is_success:
            code, message = _api_exception(response)
            msg = f"Twilio API error. code: {code}, message: {message}"
            raise TransportError(msg, _TRANSPORT_NAME, response.status_code)

        # The SMS is accepted on any 2xx; the body is only logged
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            self._log.debug("twilio_response_unparsed", status_code=response.status_code)
            return
        self._log.debug(
            "twilio_response",
            date_created=data.get("date_created"),
            date_sent=data.get("date_sent"),
            status=data.get("status"),
        )


def _api_exception(response: httpx.Response) -> tuple[int, str]:
    """Extract the Twilio error code and message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.status_code, response.text
    if not isinstance(data, dict):
        return response.status_code, response.text
    return data.get("code", response.status_code), data.get("message", "")
