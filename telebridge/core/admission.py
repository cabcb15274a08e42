"""
Admission filter for inbound source chat messages.
Normalizes Telegram messages and decides whether they are eligible for relay.
"""
import logging
from typing import Callable, Optional

from telegram import Message

from telebridge.core.errors import FilteredOut
from telebridge.core.models import UNKNOWN_AUTHOR, NormalizedEvent, make_relay_key
from telebridge.utils import preview

logger = logging.getLogger(__name__)


def format_author(message: Message) -> str:
    """Prefer the sender's full name, then their handle."""
    user = message.from_user
    if user is None:
        return UNKNOWN_AUTHOR
    name = " ".join(part for part in (user.first_name, user.last_name) if part)
    if name:
        return name
    if user.username:
        return f"@{user.username}"
    return UNKNOWN_AUTHOR


class AdmissionFilter:
    """Decides which source chat messages enter the relay pipeline."""

    def __init__(self, source_chat_id: str, is_duplicate: Callable[[str], bool]):
        self.source_chat_id = str(source_chat_id)
        self.source_handle = self.source_chat_id[1:] if self.source_chat_id.startswith('@') else None
        self.is_duplicate = is_duplicate

    def matches_source(self, message: Message) -> bool:
        """Match the configured chat by numeric id or by exact handle."""
        if str(message.chat.id) == self.source_chat_id:
            return True
        return bool(self.source_handle and message.chat.username == self.source_handle)

    def normalize(self, message: Message) -> NormalizedEvent:
        """Build a NormalizedEvent without applying any eligibility rules."""
        reply = message.reply_to_message
        return NormalizedEvent(
            id=message.message_id,
            chat_id=str(message.chat.id),
            author=format_author(message),
            text=message.text or "",
            reply_to_id=reply.message_id if reply is not None else None,
            timestamp=int(message.date.timestamp()) if message.date else 0,
        )

    def screen(self, message: Message) -> NormalizedEvent:
        """Normalize a message, raising FilteredOut when it must not be relayed."""
        if not message.text:
            raise FilteredOut("non-text message (media/service message)")

        if message.from_user is not None and message.from_user.is_bot:
            raise FilteredOut(f"bot message from {message.from_user.username or message.from_user.id}")

        if not self.matches_source(message):
            raise FilteredOut(f"not from source chat (chat {message.chat.id})")

        if not message.text.strip():
            raise FilteredOut("no processable content")

        key = make_relay_key(message.chat.id, message.message_id)
        if self.is_duplicate(key):
            raise FilteredOut(f"duplicate message {key}")

        return self.normalize(message)

    def admit(self, message: Message) -> Optional[NormalizedEvent]:
        """Return the normalized event, or None if the message is filtered out."""
        try:
            event = self.screen(message)
        except FilteredOut as e:
            logger.info(f"Message {message.chat.id}:{message.message_id} filtered: {e.reason}")
            return None

        logger.info(
            f"Admitted message {event.relay_key} from {event.author}: {preview(event.text)!r}"
        )
        return event
