"""
Error taxonomy for the relay pipeline.

Failures scoped to a single event or relay key are caught and logged by the
stage that owns them. Only TransportFatal and ConfigurationError are meant to
abort startup.
"""
from typing import Optional


class RelayError(Exception):
    """Base class for all relay errors."""


class FilteredOut(RelayError):
    """An inbound event is not eligible for relay. Not a failure."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigurationError(RelayError):
    """Invalid or unsupported configuration detected at startup."""


class TranslationFailure(RelayError):
    """A translation backend could not produce a result."""


class TranslationBackendError(TranslationFailure):
    """The backend was unreachable or answered with an error status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedTranslationResponse(TranslationFailure):
    """The backend answered, but not with something we can read."""


class TransportError(RelayError):
    """Base class for errors raised by the chat transport."""


class FormatRejected(TransportError):
    """The destination rejected the message markup."""


class DeliveryFailure(TransportError):
    """Sending a message to the destination failed."""


class VerificationUncertain(TransportError):
    """The transport could not tell whether a source message still exists."""


class TransportFatal(TransportError):
    """Unrecoverable transport error, e.g. an invalid bot token."""
