"""
Google Cloud Translation (v2 HTTP API) backend.
Translates only the source-script runs of a message and keeps the rest intact.
"""
import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from telebridge.core.errors import (
    MalformedTranslationResponse, TranslationBackendError
)
from telebridge.translators.base import Translator
from telebridge.translators.script import contains_script, split_segments
from telebridge.utils import split_into_chunks

logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"


class GoogleTranslator(Translator):
    """Translator backed by the Google Cloud Translation v2 REST API."""

    name = "google"

    def __init__(
        self,
        api_key: str,
        default_source_lang: str = "zh",
        default_target_lang: str = "en",
        max_chunk_length: int = 4000,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.default_source_lang = default_source_lang
        self.default_target_lang = default_target_lang
        self.max_chunk_length = max_chunk_length
        self.timeout = timeout
        self._session = session

    @classmethod
    def from_settings(cls, settings) -> "GoogleTranslator":
        return cls(
            api_key=settings.google_translate_api_key,
            default_source_lang=settings.translation_source_lang,
            default_target_lang=settings.translation_target_lang,
            max_chunk_length=settings.translation_max_length,
        )

    async def setup(self) -> None:
        """Initialize the HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

    async def close(self) -> None:
        """Clean up resources."""
        if self._session:
            await self._session.close()
            self._session = None

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if not self.api_key:
            raise TranslationBackendError("GOOGLE_TRANSLATE_API_KEY is not set")

        safe_text = text or ""
        if not safe_text.strip():
            return safe_text

        source = source_lang or self.default_source_lang
        target = target_lang or self.default_target_lang

        if not contains_script(safe_text, source):
            logger.debug("No source-script text found, passing message through unchanged")
            return safe_text

        segments = split_segments(safe_text, source)
        parts = []
        for segment in segments:
            if segment.in_script:
                parts.append(await self._translate_run(segment.text, source, target))
            else:
                parts.append(segment.text)

        result = "".join(parts)
        logger.debug(
            f"Translation complete: {len(safe_text)} -> {len(result)} chars "
            f"in {len(segments)} segments"
        )
        return result

    async def _translate_run(self, text: str, source_lang: str, target_lang: str) -> str:
        pieces = []
        for chunk in split_into_chunks(text, self.max_chunk_length):
            pieces.append(await self._translate_chunk(chunk, source_lang, target_lang))
        return "".join(pieces)

    async def _translate_chunk(self, text: str, source_lang: str, target_lang: str) -> str:
        """Send one request to the API and return the translated text."""
        if not self._session:
            await self.setup()

        body = {
            "q": text,
            "target": target_lang,
            "format": "text",
        }
        if source_lang:
            body["source"] = source_lang

        logger.debug(
            f"Sending translation request ({source_lang or 'auto'} -> {target_lang}, "
            f"{len(text)} chars)"
        )

        try:
            async with self._session.post(
                GOOGLE_TRANSLATE_URL, params={"key": self.api_key}, json=body
            ) as response:
                response_text = await response.text()
                if response.status != 200:
                    logger.error(f"Google translate API error {response.status}: {response_text}")
                    raise TranslationBackendError(
                        f"Google translate failed: {response.status} {response_text}",
                        status=response.status,
                    )
        except aiohttp.ClientError as e:
            logger.error(f"Error making request to Google translate: {e}")
            raise TranslationBackendError(f"Google translate request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TranslationBackendError("Google translate request timed out") from e

        return self._parse_response(response_text)

    @staticmethod
    def _parse_response(response_text: str) -> str:
        try:
            payload: Any = json.loads(response_text)
        except ValueError as e:
            raise MalformedTranslationResponse(
                f"Invalid JSON response from Google translate: {e}"
            ) from e

        try:
            translated = payload["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError):
            translated = None

        if not translated or not isinstance(translated, str):
            logger.error(f"Google translate returned unexpected format: {payload!r}")
            raise MalformedTranslationResponse("Google translate returned no result")

        return translated
