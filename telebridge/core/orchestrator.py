"""
Relay orchestrator that wires admission, formatting and delayed delivery
together for every inbound source chat message.
"""
import logging
from typing import Any, Dict, Optional, Sequence

from telegram import Message

from telebridge.clients.base import Transport
from telebridge.config import Settings
from telebridge.core.admission import AdmissionFilter
from telebridge.core.delivery_queue import DelayedDeliveryQueue
from telebridge.core.formatter import ContentFormatter
from telebridge.core.models import make_relay_key
from telebridge.translators.base import Translator
from telebridge.utils import is_retryable_error

logger = logging.getLogger(__name__)


class RelayOrchestrator:
    """Main relay engine that owns the per-event pipeline and its lifecycle."""

    def __init__(
        self,
        settings: Settings,
        transport: Transport,
        translator: Optional[Translator] = None,
        queue: Optional[DelayedDeliveryQueue] = None,
    ):
        self.settings = settings
        self.transport = transport
        self.translator = translator
        self.queue = queue or DelayedDeliveryQueue(
            transport,
            delay_seconds=settings.message_delay_seconds,
            max_message_length=min(settings.max_message_length, transport.max_message_length),
            max_tracked_keys=settings.max_tracked_keys,
        )
        self.admission = AdmissionFilter(settings.telegram_source_chat_id, is_duplicate=self.queue.is_known)
        self.formatter = ContentFormatter.from_settings(settings, translator)
        self._running = False
        self._stats = {
            'received': 0,
            'admitted': 0,
            'errors': 0,
            'retractions': 0,
        }

    async def start(self) -> None:
        """Start consuming the source chat."""
        if self._running:
            return

        logger.info("Starting Telegram bridge...")
        logger.info(f"Source Chat ID: {self.settings.telegram_source_chat_id}")
        logger.info(f"Destination Chat ID: {self.settings.telegram_destination_chat_id}")

        await self.transport.initialize()
        self.queue.start()
        try:
            await self.transport.start(self.handle_event, self.handle_retraction)
        except Exception:
            await self.queue.stop()
            try:
                await self.transport.stop()
            except Exception as e:
                logger.error(f"Error stopping transport after failed start: {e}", exc_info=True)
            raise

        self._running = True
        logger.info("Telegram bridge started")

    async def stop(self) -> None:
        """Drop pending deliveries, then stop the transport."""
        if not self._running:
            return

        logger.info("Stopping Telegram bridge...")
        self._running = False

        await self.queue.stop()
        await self.transport.stop()
        if self.translator is not None:
            await self.translator.close()

        logger.info("Telegram bridge stopped")

    async def handle_event(self, message: Message) -> None:
        """Run one inbound message through the pipeline. Never raises."""
        self._stats['received'] += 1
        try:
            event = self.admission.admit(message)
            if event is None:
                return

            formatted_text = await self.formatter.format(event)
            self.queue.enqueue(event.relay_key, event, formatted_text)
            self._stats['admitted'] += 1

        except Exception as e:
            self._stats['errors'] += 1
            logger.error(f"Error handling update: {e}", exc_info=True)
            if is_retryable_error(e):
                logger.warning("Retryable error detected, will retry on next update")

    async def handle_retraction(self, chat_id: str, message_ids: Sequence[int]) -> None:
        """Cancel or tombstone deliveries for deleted source messages."""
        for message_id in message_ids:
            self._stats['retractions'] += 1
            try:
                self.queue.mark_retracted(make_relay_key(chat_id, message_id))
            except Exception as e:
                logger.error(f"Error handling deletion of {chat_id}:{message_id}: {e}", exc_info=True)

    def get_statistics(self) -> Dict[str, Any]:
        """Get relay statistics."""
        return {
            **self._stats,
            'queue': self.queue.get_statistics(),
            'engine_running': self._running,
        }

    @property
    def is_running(self) -> bool:
        return self._running
