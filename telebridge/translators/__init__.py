"""Translation backends for the relay."""

from .base import Translator
from .composite import CompositeTranslator
from .google import GoogleTranslator
from .factory import create_translator

__all__ = [
    "Translator",
    "CompositeTranslator",
    "GoogleTranslator",
    "create_translator",
]
