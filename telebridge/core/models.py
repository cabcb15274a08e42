"""Value objects shared by the relay pipeline."""
import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Union

UNKNOWN_AUTHOR = "Unknown"


def make_relay_key(chat_id: Union[int, str], message_id: int) -> str:
    """Build the key that identifies one source message for its whole lifetime."""
    return f"{chat_id}:{message_id}"


@dataclass(frozen=True)
class NormalizedEvent:
    """A source chat message reduced to what the relay needs."""

    id: int
    chat_id: str
    author: str
    text: str
    reply_to_id: Optional[int] = None
    timestamp: int = 0

    @property
    def relay_key(self) -> str:
        return make_relay_key(self.chat_id, self.id)


@dataclass
class PendingDelivery:
    """A formatted message waiting for its delay window to pass."""

    key: str
    event: NormalizedEvent
    formatted_text: str
    fire_at: float
    handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()


@dataclass
class DeliveryResult:
    """Destination message ids produced by one delivery, in send order."""

    message_ids: List[int] = field(default_factory=list)

    @property
    def delivery_id(self) -> Optional[int]:
        return self.message_ids[0] if self.message_ids else None
