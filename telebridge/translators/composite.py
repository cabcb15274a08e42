"""Primary/fallback translator composition."""
import logging
from typing import Optional

from telebridge.translators.base import Translator

logger = logging.getLogger(__name__)


class CompositeTranslator(Translator):
    """Tries the primary backend and falls back to a second one on any failure."""

    name = "composite"

    def __init__(self, primary: Translator, fallback: Optional[Translator] = None):
        if primary is None:
            raise ValueError("No primary translator configured")
        self.primary = primary
        self.fallback = fallback

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        try:
            return await self.primary.translate(text, source_lang, target_lang)
        except Exception as primary_error:
            logger.warning(f"Primary translator {self.primary.name} failed: {primary_error}")
            if self.fallback is None:
                raise

        try:
            return await self.fallback.translate(text, source_lang, target_lang)
        except Exception as fallback_error:
            logger.error(f"Fallback translator {self.fallback.name} failed: {fallback_error}")
            raise

    async def close(self) -> None:
        await self.primary.close()
        if self.fallback is not None and self.fallback is not self.primary:
            await self.fallback.close()
