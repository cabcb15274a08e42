"""Translator interface."""

from abc import ABC, abstractmethod


class Translator(ABC):
    """Translates text from one language to another."""

    name: str = "base"

    @abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Return ``text`` translated, raising TranslationFailure on error."""
        pass

    async def close(self) -> None:
        """Release network resources held by the backend."""
        pass
