"""
Translator factory.
Builds the primary + fallback translator pair from settings.
"""
import logging
from typing import Callable, Dict, Optional

from telebridge.config import Settings
from telebridge.core.errors import ConfigurationError
from telebridge.translators.base import Translator
from telebridge.translators.composite import CompositeTranslator
from telebridge.translators.google import GoogleTranslator

logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Callable[[Settings], Translator]] = {
    "google": GoogleTranslator.from_settings,
}


def _build(provider: str, settings: Settings) -> Optional[Translator]:
    builder = PROVIDERS.get((provider or "").strip().lower())
    if builder is None:
        return None
    return builder(settings)


def create_translator(settings: Settings) -> Optional[Translator]:
    """Create the configured translator, or None when translation is disabled."""
    if not settings.translation_enabled:
        return None

    primary = _build(settings.translation_provider, settings)
    if primary is None:
        raise ConfigurationError(
            f"Unsupported translation provider: {settings.translation_provider or 'none'}"
        )

    fallback = _build(settings.translation_fallback_provider, settings)
    if fallback is None and settings.translation_fallback_provider:
        logger.warning(
            f"Unsupported fallback translation provider "
            f"{settings.translation_fallback_provider!r}, running without fallback"
        )

    if isinstance(primary, GoogleTranslator) and not settings.google_translate_api_key:
        logger.warning("GOOGLE_TRANSLATE_API_KEY is not set; Google translation will fail")

    logger.info(
        f"Translation provider: {settings.translation_provider}, "
        f"fallback: {settings.translation_fallback_provider or 'none'}"
    )
    return CompositeTranslator(primary, fallback)
