"""
User client manager using Telethon for MTProto access.
Bots never see deletions, so an optional user session watches the source
chat for deleted messages and reports them as retractions.
"""
import logging
from typing import Any, Dict, Optional

from telethon import TelegramClient, events

from telebridge.clients.base import RetractionHandler
from telebridge.config import Settings

logger = logging.getLogger(__name__)


class UserClientManager:
    """Manages the Telethon user client that observes source chat deletions."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[TelegramClient] = None
        self.source_peer_id: Optional[int] = None
        self._on_retraction: Optional[RetractionHandler] = None
        self._is_running = False

    async def initialize(self) -> None:
        """Initialize the Telethon user client."""
        logger.info("Initializing Telethon user client...")

        session_path = self.settings.user_session_file_path
        session_path.parent.mkdir(parents=True, exist_ok=True)

        self.client = TelegramClient(
            str(session_path.with_suffix('')),
            self.settings.telegram_api_id,
            self.settings.telegram_api_hash,
            device_model="Relay Bridge",
            system_version="1.0",
            app_version="1.0.0"
        )
        self.client.add_event_handler(self._deleted_handler, events.MessageDeleted())

        logger.info("Telethon user client initialized successfully")

    async def _deleted_handler(self, event) -> None:
        try:
            await self._handle_deleted(event.chat_id, list(event.deleted_ids))
        except Exception as e:
            logger.error(f"Error handling deleted messages: {e}", exc_info=True)

    async def _handle_deleted(self, chat_id: Optional[int], deleted_ids) -> None:
        """Forward deletions in the source chat to the retraction handler."""
        if chat_id is None:
            # Deletions in basic groups and private chats carry no chat id
            logger.debug(f"Ignoring deletion of {deleted_ids} without chat id")
            return
        if self.source_peer_id is None or chat_id != self.source_peer_id:
            return
        if self._on_retraction is None or not deleted_ids:
            return

        logger.info(f"Source messages deleted in {chat_id}: {deleted_ids}")
        await self._on_retraction(str(chat_id), deleted_ids)

    async def start(self, on_retraction: RetractionHandler) -> None:
        """Connect with an existing session and start watching deletions."""
        if not self.client:
            await self.initialize()

        logger.info("Starting Telethon user client...")
        self._on_retraction = on_retraction

        await self.client.connect()
        if not await self.client.is_user_authorized():
            logger.error("User client not authorized. Deletion watching is disabled.")
            await self.client.disconnect()
            return

        source = self.settings.telegram_source_chat_id
        self.source_peer_id = await self.client.get_peer_id(
            source if source.startswith('@') else int(source)
        )
        self._is_running = True

        me = await self.client.get_me()
        logger.info(
            f"Watching deletions in {self.source_peer_id} as "
            f"{me.first_name} (@{me.username or 'no_username'})"
        )

    async def stop(self) -> None:
        """Stop the user client."""
        if self.client and self._is_running:
            logger.info("Stopping Telethon user client...")
            await self.client.disconnect()
            self._is_running = False
            logger.info("Telethon user client stopped")

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self._is_running,
            "initialized": self.client is not None,
            "source_peer_id": self.source_peer_id,
        }

    @property
    def is_running(self) -> bool:
        return self._is_running
