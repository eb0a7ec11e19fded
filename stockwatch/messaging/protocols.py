"""Protocol interface for messaging transports."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Messenger(Protocol):
    """Protocol for sending a message to a destination.

    Any transport that implements ``send_message`` with the matching
    signature can be used by the reconciliation jobs.
    """

    def send_message(self, title: str, body: str, sender: str, destination: str) -> None:
        """Send a message.

        Args:
            title: Short headline.
            body: Message body.
            sender: Sender identity (phone number for SMS, unused by chat).
            destination: Phone number or chat id.

        Raises:
            TransportError: If the message could not be delivered.
        """
        ...
