"""
Client factory for the relay transport.
Combines the Bot API client (polling, delivery, existence checks) with the
optional Telethon watcher (deletions) behind a single Transport.
"""
import logging
from typing import Any, Dict, Optional

from telebridge.clients.base import EventHandler, RetractionHandler, Transport
from telebridge.clients.bot_client import BotClientManager
from telebridge.clients.user_client import UserClientManager
from telebridge.config import Settings

logger = logging.getLogger(__name__)


class ClientFactory(Transport):
    """Factory for managing and coordinating both Telegram clients."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.bot_client = BotClientManager(settings)
        self.user_client: Optional[UserClientManager] = None
        if settings.user_watcher_enabled:
            self.user_client = UserClientManager(settings)
        self.max_message_length = min(settings.max_message_length, self.bot_client.max_message_length)
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize both clients."""
        if self._initialized:
            return

        logger.info("Initializing client factory...")

        await self.bot_client.initialize()
        if self.user_client:
            await self.user_client.initialize()
        else:
            logger.info("No MTProto credentials configured; deletions are detected at send time only")

        self._initialized = True
        logger.info("Client factory initialized successfully")

    async def start(
        self,
        on_event: EventHandler,
        on_retraction: Optional[RetractionHandler] = None,
    ) -> None:
        """Start both bot and user clients."""
        if not self._initialized:
            await self.initialize()

        logger.info("Starting all clients...")

        if self.user_client and on_retraction is not None:
            await self.user_client.start(on_retraction)
        await self.bot_client.start(on_event)

        logger.info("All clients started successfully")

    async def stop(self) -> None:
        """Stop both clients."""
        logger.info("Stopping all clients...")

        await self.bot_client.stop()
        if self.user_client:
            await self.user_client.stop()
        self._initialized = False

        logger.info("All clients stopped")

    async def send_text(self, text: str, parse_mode: Optional[str] = None) -> int:
        return await self.bot_client.send_text(text, parse_mode=parse_mode)

    async def check_still_exists(self, chat_id: str, message_id: int) -> bool:
        return await self.bot_client.check_still_exists(chat_id, message_id)

    def get_client_status(self) -> Dict[str, Any]:
        """Get status of both clients."""
        return {
            "bot_client": self.bot_client.get_status(),
            "user_client": self.user_client.get_status() if self.user_client else None,
            "factory_initialized": self._initialized,
        }
