"""
Delayed delivery queue for relayed messages.
Holds each message for a fixed delay, supports cancellation by relay key,
re-verifies the source message at fire time and retries markup failures as
plain text.

All state lives on the event loop thread. Timers are asyncio TimerHandles, and
every check-then-mutate sequence runs without an intervening await, so a
retraction and a timer for the same key are applied in the order the loop
observes them.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from telebridge.clients.base import Transport
from telebridge.core.deduplication import DEFAULT_MAX_KEYS, BoundedKeySet
from telebridge.core.errors import DeliveryFailure, FormatRejected
from telebridge.core.models import DeliveryResult, NormalizedEvent, PendingDelivery
from telebridge.utils import split_into_chunks

logger = logging.getLogger(__name__)


class DelayedDeliveryQueue:
    """Schedules relay deliveries and tracks delivered and retracted keys."""

    def __init__(
        self,
        transport: Transport,
        delay_seconds: float = 30.0,
        max_message_length: Optional[int] = None,
        chunk_pause: float = 0.1,
        max_tracked_keys: int = DEFAULT_MAX_KEYS,
        parse_mode: Optional[str] = "Markdown",
    ):
        self.transport = transport
        self.delay_seconds = delay_seconds
        self.max_message_length = max_message_length or transport.max_message_length
        self.chunk_pause = chunk_pause
        self.parse_mode = parse_mode

        self.processed = BoundedKeySet(max_tracked_keys, name="processed")
        self.tombstones = BoundedKeySet(max_tracked_keys, name="tombstone")

        self._pending: Dict[str, PendingDelivery] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._running = False
        self._stats = {
            'enqueued': 0,
            'delivered': 0,
            'cancelled': 0,
            'skipped': 0,
            'failed': 0,
        }

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info(f"Delivery queue started with {self.delay_seconds:g}s delay")

    async def stop(self) -> None:
        """Cancel every timer and in-flight delivery. Pending messages are dropped."""
        if not self._running:
            return

        logger.info("Stopping delivery queue...")
        self._running = False

        for key, pending in self._pending.items():
            pending.cancel()
            logger.info(f"Cleared pending message: {key}")
        self._pending.clear()

        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

        logger.info("Delivery queue stopped")

    def enqueue(self, key: str, event: NormalizedEvent, formatted_text: str) -> PendingDelivery:
        """Schedule delivery of ``formatted_text`` once the delay has passed."""
        if not self._running:
            raise RuntimeError("Delivery queue not started")

        loop = asyncio.get_running_loop()

        previous = self._pending.pop(key, None)
        if previous is not None:
            previous.cancel()
            logger.warning(f"Replacing pending delivery for {key}")

        fire_at = loop.time() + self.delay_seconds
        pending = PendingDelivery(key=key, event=event, formatted_text=formatted_text, fire_at=fire_at)
        pending.handle = loop.call_at(fire_at, self._fire, key)
        self._pending[key] = pending
        self._stats['enqueued'] += 1

        logger.info(f"Queued message {key} with {self.delay_seconds:g}s delay")
        return pending

    def mark_retracted(self, key: str) -> bool:
        """Record that a source message is gone and cancel its pending delivery.

        Returns True if a pending delivery was cancelled.
        """
        if key in self.processed:
            logger.info(f"Message {key} was deleted after it had been relayed")
            return False

        self.tombstones.add(key)

        pending = self._pending.pop(key, None)
        if pending is None:
            logger.debug(f"Recorded deletion of {key} with nothing pending")
            return False

        pending.cancel()
        self._stats['cancelled'] += 1
        logger.info(f"Cancelled pending message {key} due to deletion")
        return True

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def is_known(self, key: str) -> bool:
        """True for keys that are scheduled, being sent, or already delivered."""
        return key in self._pending or key in self._in_flight or key in self.processed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _fire(self, key: str) -> None:
        pending = self._pending.pop(key, None)
        if pending is None:
            return

        if key in self.tombstones:
            self._stats['skipped'] += 1
            logger.info(f"Skipping message {key} - it was deleted")
            return

        task = asyncio.get_running_loop().create_task(self._deliver(pending))
        self._in_flight[key] = task
        task.add_done_callback(lambda t, k=key: self._forget_task(k, t))

    def _forget_task(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _deliver(self, pending: PendingDelivery) -> Optional[DeliveryResult]:
        key = pending.key
        event = pending.event

        try:
            exists = await self.transport.check_still_exists(event.chat_id, event.id)
        except Exception as e:
            logger.warning(f"Could not verify message {key} still exists, sending anyway: {e}")
            exists = True

        if not exists:
            self.tombstones.add(key)
            self._stats['skipped'] += 1
            logger.info(f"Skipping message {key} - message was deleted")
            return None

        if key in self.tombstones:
            self._stats['skipped'] += 1
            logger.info(f"Skipping message {key} - deleted during verification")
            return None

        logger.info(f"Forwarding message {key} from {event.author} (after delay)")
        try:
            result = await self._send(key, pending.formatted_text)
        except Exception as e:
            self._stats['failed'] += 1
            logger.error(f"Error sending queued message {key}: {e}", exc_info=True)
            return None

        self.processed.add(key)
        self._stats['delivered'] += 1
        logger.info(f"Successfully forwarded message {key} -> {result.delivery_id}")
        return result

    async def _send(self, key: str, text: str) -> DeliveryResult:
        """Send text in order-preserving chunks, falling back to plain text once."""
        result = DeliveryResult()
        parse_mode = self.parse_mode
        chunks = split_into_chunks(text, self.max_message_length)

        for index, chunk in enumerate(chunks):
            if index:
                await asyncio.sleep(self.chunk_pause)
            try:
                message_id = await self.transport.send_text(chunk, parse_mode=parse_mode)
            except FormatRejected as e:
                if parse_mode is None:
                    raise DeliveryFailure(f"Plain-text message rejected: {e}") from e
                logger.warning(f"{parse_mode} parsing failed for message {key}, sending as plain text")
                parse_mode = None
                try:
                    message_id = await self.transport.send_text(chunk, parse_mode=None)
                except Exception as retry_error:
                    raise DeliveryFailure(f"Plain-text retry failed: {retry_error}") from retry_error
            result.message_ids.append(message_id)

        return result

    async def join(self) -> None:
        """Wait until every scheduled and in-flight delivery has settled."""
        loop = asyncio.get_running_loop()
        while self._pending or self._in_flight:
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
                await asyncio.sleep(0)
                continue
            next_fire = min(pending.fire_at for pending in self._pending.values())
            await asyncio.sleep(max(0.0, next_fire - loop.time()))

    def get_statistics(self) -> Dict[str, Any]:
        """Get queue statistics."""
        return {
            'pending': len(self._pending),
            'in_flight': len(self._in_flight),
            'processed_keys': len(self.processed),
            'tombstoned_keys': len(self.tombstones),
            'is_running': self._running,
            **self._stats,
        }

    @property
    def is_running(self) -> bool:
        return self._running
