"""
Content formatter that turns a normalized event into outbound text.
Supports optional translation with the original text appended.
"""
import logging
from typing import Optional

from telebridge.config import Settings
from telebridge.core.models import UNKNOWN_AUTHOR, NormalizedEvent
from telebridge.translators.base import Translator
from telebridge.utils import preview

logger = logging.getLogger(__name__)


class ContentFormatter:
    """Formats relayed messages, translating them when enabled."""

    def __init__(
        self,
        translator: Optional[Translator] = None,
        translation_enabled: bool = False,
        source_lang: str = "zh",
        target_lang: str = "en",
        show_original: bool = False,
        source_tag: str = "[From CN]",
    ):
        self.translator = translator
        self.translation_enabled = translation_enabled
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.show_original = show_original
        self.source_tag = source_tag

    @classmethod
    def from_settings(cls, settings: Settings, translator: Optional[Translator] = None) -> "ContentFormatter":
        return cls(
            translator=translator,
            translation_enabled=settings.translation_enabled,
            source_lang=settings.translation_source_lang,
            target_lang=settings.translation_target_lang,
            show_original=settings.translation_show_original,
            source_tag=settings.source_tag,
        )

    async def translate_text(self, event: NormalizedEvent) -> str:
        """Return the translated text, or the source text if translation is off or fails."""
        if not self.translation_enabled or self.translator is None:
            reason = "translation is disabled" if not self.translation_enabled else "no translator configured"
            logger.debug(f"Translation skipped for message {event.id}: {reason}")
            return event.text

        logger.info(
            f"Attempting translation for message {event.id} "
            f"({self.source_lang} -> {self.target_lang}, {len(event.text)} chars)"
        )
        try:
            translated = await self.translator.translate(event.text, self.source_lang, self.target_lang)
        except Exception as e:
            logger.warning(
                f"Translation failed for message {event.id}: {e}; relaying original text",
                exc_info=True,
            )
            return event.text

        logger.info(f"Translation successful for message {event.id}: {preview(translated)!r}")
        return translated

    async def format(self, event: NormalizedEvent) -> str:
        output_text = await self.translate_text(event)

        formatted = f"{self.source_tag} {event.author or UNKNOWN_AUTHOR}: {output_text}"

        if self.translation_enabled and self.show_original:
            formatted = f"{formatted}\nOriginal: {event.text}"

        if event.reply_to_id is not None:
            formatted = f"Replying to message {event.reply_to_id}\n{formatted}"

        return formatted
