"""Shared fixtures for relay tests."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest
from telegram import Chat, Message, User

from telebridge.clients.base import Transport
from telebridge.config import Settings
from telebridge.core.errors import FormatRejected

SOURCE_CHAT_ID = -100
DESTINATION_CHAT_ID = "-200"


class FakeTransport(Transport):
    """In-memory transport that records sends and scripts failures."""

    max_message_length = 4096

    def __init__(self):
        self.sent: List[Tuple[str, Optional[str]]] = []
        self.exists = True
        self.exists_error: Optional[Exception] = None
        self.existence_checks: List[Tuple[str, int]] = []
        self.format_errors = 0
        self.send_error: Optional[Exception] = None
        self.on_event = None
        self.on_retraction = None
        self.initialized = False
        self.started = False
        self.stopped = False
        self._next_id = 1000

    async def initialize(self) -> None:
        self.initialized = True

    async def start(self, on_event, on_retraction=None) -> None:
        self.on_event = on_event
        self.on_retraction = on_retraction
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def send_text(self, text: str, parse_mode: Optional[str] = None) -> int:
        if parse_mode is not None and self.format_errors > 0:
            self.format_errors -= 1
            raise FormatRejected("Can't parse entities: can't find end of the entity")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((text, parse_mode))
        self._next_id += 1
        return self._next_id

    async def check_still_exists(self, chat_id: str, message_id: int) -> bool:
        self.existence_checks.append((chat_id, message_id))
        if self.exists_error is not None:
            raise self.exists_error
        return self.exists

    @property
    def sent_texts(self) -> List[str]:
        return [text for text, _ in self.sent]


def make_message(
    message_id: int = 5,
    text: Optional[str] = "你好",
    chat_id: int = SOURCE_CHAT_ID,
    chat_username: Optional[str] = None,
    from_user: Optional[User] = None,
    reply_to: Optional[int] = None,
) -> Message:
    """Build a Telegram message as python-telegram-bot would deliver it."""
    chat = Chat(id=chat_id, type=Chat.SUPERGROUP, username=chat_username)
    reply_to_message = None
    if reply_to is not None:
        reply_to_message = Message(
            message_id=reply_to,
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            chat=chat,
            text="earlier",
        )
    return Message(
        message_id=message_id,
        date=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        chat=chat,
        from_user=from_user,
        text=text,
        reply_to_message=reply_to_message,
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the process environment and any .env file."""
    return Settings(
        _env_file=None,
        telegram_bot_token="123:test-token",
        telegram_source_chat_id=str(SOURCE_CHAT_ID),
        telegram_destination_chat_id=DESTINATION_CHAT_ID,
        message_delay_ms=0,
    )


@pytest.fixture
def human() -> User:
    return User(id=42, first_name="Li", last_name="Wei", is_bot=False, username="liwei")
