"""Client management module for the Telegram transport."""

from .base import Transport
from .bot_client import BotClientManager
from .user_client import UserClientManager
from .client_factory import ClientFactory

__all__ = [
    "Transport",
    "BotClientManager",
    "UserClientManager",
    "ClientFactory"
]
