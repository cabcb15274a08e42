"""
Bot API client manager using python-telegram-bot.
Receives source chat messages by long polling and sends relayed text to the destination.
"""
import logging
from typing import Any, Dict, Optional

from telegram import Bot, Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters
from telegram.error import BadRequest, InvalidToken, RetryAfter, TelegramError, TimedOut

from telebridge.clients.base import (
    EventHandler, RetractionHandler, Transport, TELEGRAM_MAX_MESSAGE_LENGTH
)
from telebridge.config import Settings
from telebridge.core.errors import (
    DeliveryFailure, FormatRejected, TransportFatal, VerificationUncertain
)

logger = logging.getLogger(__name__)

MESSAGE_NOT_FOUND_MARKERS = (
    "message to forward not found",
    "message not found",
    "message_id_invalid",
)


class BotClientManager(Transport):
    """Manages the Telegram Bot API client used for polling and delivery."""

    max_message_length = TELEGRAM_MAX_MESSAGE_LENGTH

    def __init__(self, settings: Settings):
        self.settings = settings
        self.destination_chat_id = settings.telegram_destination_chat_id
        self.application: Optional[Application] = None
        self.bot: Optional[Bot] = None
        self._on_event: Optional[EventHandler] = None
        self._is_running = False

    async def initialize(self) -> None:
        """Create the application and verify the bot token."""
        if self.application:
            return

        logger.info("Initializing Bot API client...")

        builder = Application.builder().token(self.settings.telegram_bot_token)
        if self.settings.http_proxy:
            builder = builder.proxy(self.settings.http_proxy).get_updates_proxy(self.settings.http_proxy)
            logger.info(f"Proxy configured: {self.settings.http_proxy}")
        application = builder.build()

        logger.info("Verifying bot token...")
        try:
            await application.initialize()
        except InvalidToken as e:
            raise TransportFatal(f"Invalid bot token: {e}") from e
        except TelegramError as e:
            raise TransportFatal(f"Bot authentication failed: {e}") from e

        self.application = application
        self.bot = application.bot
        logger.info(f"Bot authenticated as @{self.bot.username} ({self.bot.first_name})")
        logger.warning(
            "If the bot only receives messages starting with '/', disable Group Privacy "
            "for it in @BotFather and re-add it to the source chat"
        )

    async def _register_handlers(self) -> None:
        app = self.application
        app.add_handler(MessageHandler(
            filters.UpdateType.MESSAGE | filters.UpdateType.CHANNEL_POST,
            self._message_handler,
        ))
        app.add_error_handler(self._error_handler)

    async def _message_handler(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Hand every inbound message to the relay."""
        message = update.effective_message
        if message is None or self._on_event is None:
            return

        logger.debug(
            f"Message received from chat {message.chat_id} "
            f"({message.chat.type}, has_text={bool(message.text)})"
        )
        try:
            await self._on_event(message)
        except Exception as e:
            logger.error(f"Error handling update: {e}", exc_info=True)

    async def _error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle errors in bot operations."""
        if isinstance(context.error, RetryAfter):
            logger.warning(f"Rate limited by Telegram: retry after {context.error.retry_after} seconds")
        elif isinstance(context.error, TimedOut):
            logger.warning("Request timed out")
        else:
            logger.error(f"Bot error: {context.error}", exc_info=context.error)

    async def start(
        self,
        on_event: EventHandler,
        on_retraction: Optional[RetractionHandler] = None,
    ) -> None:
        """Start long polling. Deletions are not visible to bots, so on_retraction is unused."""
        if self._is_running:
            logger.warning("Bot is already running")
            return
        if not self.application:
            await self.initialize()

        self._on_event = on_event
        await self._register_handlers()

        logger.info("Starting bot polling...")
        await self.application.start()
        await self.application.updater.start_polling(
            allowed_updates=[Update.MESSAGE, Update.CHANNEL_POST],
            timeout=10,
        )
        self._is_running = True
        logger.info("Telegram bot started and listening for messages")

    async def stop(self) -> None:
        """Stop the bot application."""
        if not self.application:
            return

        logger.info("Stopping Bot API client...")
        if self._is_running:
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            await self.application.stop()
            self._is_running = False
        await self.application.shutdown()
        self.application = None
        self.bot = None
        logger.info("Bot API client stopped")

    async def send_text(self, text: str, parse_mode: Optional[str] = None) -> int:
        """Send a message to the destination chat via Bot API."""
        if not self.bot:
            raise DeliveryFailure("Bot not initialized")

        try:
            message = await self.bot.send_message(
                chat_id=self.destination_chat_id,
                text=text,
                parse_mode=parse_mode,
            )
        except BadRequest as e:
            if "parse" in str(e).lower():
                raise FormatRejected(str(e)) from e
            raise DeliveryFailure(f"Telegram rejected message: {e}") from e
        except RetryAfter as e:
            logger.warning(f"Rate limited on send: retry after {e.retry_after} seconds")
            raise DeliveryFailure(f"Rate limited: {e}") from e
        except TelegramError as e:
            raise DeliveryFailure(f"Failed to send message via Bot API: {e}") from e

        return message.message_id

    async def check_still_exists(self, chat_id: str, message_id: int) -> bool:
        """Verify a source message by forwarding it and deleting the copy.

        Bots cannot read history, so a forward is the only probe available.
        """
        if not self.bot:
            raise VerificationUncertain("Bot not initialized")

        try:
            forwarded = await self.bot.forward_message(
                chat_id=self.destination_chat_id,
                from_chat_id=chat_id,
                message_id=message_id,
                disable_notification=True,
            )
        except BadRequest as e:
            if any(marker in str(e).lower() for marker in MESSAGE_NOT_FOUND_MARKERS):
                logger.info(f"Message {message_id} was deleted (forward test failed)")
                return False
            raise VerificationUncertain(f"Error checking message {message_id} existence: {e}") from e
        except TelegramError as e:
            raise VerificationUncertain(f"Error checking message {message_id} existence: {e}") from e

        try:
            await self.bot.delete_message(chat_id=self.destination_chat_id, message_id=forwarded.message_id)
            logger.debug(f"Verified message {message_id} exists (test forward deleted)")
        except TelegramError as e:
            logger.debug(f"Could not delete test forward for message {message_id}: {e}")

        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self._is_running,
            "initialized": self.application is not None,
        }

    @property
    def is_running(self) -> bool:
        """Check if bot is currently running."""
        return self._is_running
