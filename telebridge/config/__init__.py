"""Configuration module for the Telegram relay bridge."""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
