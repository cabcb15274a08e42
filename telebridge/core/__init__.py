"""Core relay system for the Telegram bridge."""

from .models import NormalizedEvent, PendingDelivery, DeliveryResult, make_relay_key
from .deduplication import BoundedKeySet
from .admission import AdmissionFilter
from .formatter import ContentFormatter
from .delivery_queue import DelayedDeliveryQueue
from .orchestrator import RelayOrchestrator

__all__ = [
    "NormalizedEvent",
    "PendingDelivery",
    "DeliveryResult",
    "make_relay_key",
    "BoundedKeySet",
    "AdmissionFilter",
    "ContentFormatter",
    "DelayedDeliveryQueue",
    "RelayOrchestrator",
]
