"""One-way Telegram relay with delayed delivery and optional translation."""

__version__ = "1.0.0"
