"""Transport interface consumed by the relay core."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Sequence

EventHandler = Callable[[Any], Awaitable[None]]
RetractionHandler = Callable[[str, Sequence[int]], Awaitable[None]]

TELEGRAM_MAX_MESSAGE_LENGTH = 4096


class Transport(ABC):
    """A chat connection that delivers source events and sends to the destination."""

    max_message_length: int = TELEGRAM_MAX_MESSAGE_LENGTH

    @abstractmethod
    async def initialize(self) -> None:
        """Authenticate and prepare the connection. Raises TransportFatal on bad credentials."""
        pass

    @abstractmethod
    async def start(
        self,
        on_event: EventHandler,
        on_retraction: Optional[RetractionHandler] = None,
    ) -> None:
        """Begin consuming inbound events."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    async def send_text(self, text: str, parse_mode: Optional[str] = None) -> int:
        """Send one message (at most ``max_message_length`` long) and return its id.

        Raises FormatRejected when the markup cannot be parsed and
        DeliveryFailure for any other send error.
        """
        pass

    @abstractmethod
    async def check_still_exists(self, chat_id: str, message_id: int) -> bool:
        """Best-effort check that a source message has not been deleted."""
        pass
