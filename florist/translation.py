"""
Machine translation of catalog content.

Plants and categories are authored in the source language (Turkish) and
translated into every target language when they are created. The provider
adapter never raises for upstream trouble: it logs and falls back to a
deterministic mock so record creation always has a value per language.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from .config import settings
from .errors import TranslationDegraded, TranslationError

logger = logging.getLogger(__name__)


def mock_translate(text: str, target_language: str) -> str:
    return f"{text} ({target_language.upper()})"


class TranslationProvider:
    name = "mock"

    def __init__(self, languages: Optional[List[str]] = None):
        self.languages = list(languages or settings.TARGET_LANGUAGES)
        self.calls = 0
        self.last_degraded = False

    def translate(self, text: str, target_language: str) -> str:
        if not text or not text.strip():
            return text
        if target_language not in self.languages:
            raise ValueError(f"Unsupported target language: {target_language}")

        self.calls += 1
        try:
            translated = self._translate(text, target_language)
        except TranslationDegraded as e:
            logger.warning(f"Translation to '{target_language}' degraded, using fallback text: {e}")
            self.last_degraded = True
            return mock_translate(text, target_language)
        self.last_degraded = False
        return translated

    def _translate(self, text: str, target_language: str) -> str:
        raise NotImplementedError


class MockTranslationProvider(TranslationProvider):
    """Used when no API key is configured (development, tests)."""

    def _translate(self, text: str, target_language: str) -> str:
        return mock_translate(text, target_language)


class GoogleTranslateProvider(TranslationProvider):
    name = "google_translate"

    def __init__(
        self,
        api_key: str,
        url: str = settings.GOOGLE_TRANSLATE_URL,
        source_language: str = settings.SOURCE_LANGUAGE,
        timeout: float = settings.TRANSLATION_TIMEOUT,
        languages: Optional[List[str]] = None,
        client: Optional[httpx.Client] = None,
    ):
        super().__init__(languages)
        self.api_key = api_key
        self.url = url
        self.source_language = source_language
        self.timeout = timeout
        self.client = client

    def _translate(self, text: str, target_language: str) -> str:
        # A single attempt per call; no retry.
        payload = {
            "q": text,
            "target": target_language,
            "source": self.source_language,
            "format": "text",
        }
        post = self.client.post if self.client is not None else httpx.post
        try:
            response = post(self.url, params={"key": self.api_key}, data=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json()["data"]["translations"][0]["translatedText"]
        except httpx.HTTPError as e:
            raise TranslationDegraded(f"upstream error: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise TranslationDegraded(f"unexpected response body: {e}") from e


def get_translation_provider() -> TranslationProvider:
    if settings.GOOGLE_TRANSLATE_API_KEY:
        return GoogleTranslateProvider(api_key=settings.GOOGLE_TRANSLATE_API_KEY)
    logger.debug("Translation API key not configured. Running in mock mode.")
    return MockTranslationProvider()


# --- Pipeline ---

@dataclass
class TranslationEntry:
    field: str
    language: str
    source: str
    translated: str


@dataclass
class TranslationResult:
    values: Dict[str, Dict[str, str]] = field(default_factory=dict)
    entries: List[TranslationEntry] = field(default_factory=list)
    degraded: bool = False

    def columns(self) -> Dict[str, str]:
        """Flatten to model columns, e.g. {"name_en": ..., "description_ru": ...}."""
        return {
            f"{field_name}_{language}": text
            for field_name, by_language in self.values.items()
            for language, text in by_language.items()
        }


def translate_fields(
    provider: TranslationProvider,
    fields: Dict[str, Optional[str]],
    entity: str = "record",
    languages: Optional[List[str]] = None,
) -> TranslationResult:
    """Translate every non-empty field into every target language.

    One provider call per (field, language) pair. Either every pair gets a
    value (possibly fallback text) or TranslationError is raised and nothing
    should be persisted.
    """
    languages = languages or provider.languages
    result = TranslationResult()
    try:
        for language in languages:
            for field_name, text in fields.items():
                if not text or not text.strip():
                    continue
                translated = provider.translate(text, language)
                result.values.setdefault(field_name, {})[language] = translated
                result.entries.append(TranslationEntry(field_name, language, text, translated))
                result.degraded = result.degraded or provider.last_degraded
    except Exception as e:
        logger.exception(f"Translation pipeline failed for {entity}")
        raise TranslationError(f"Error translating {entity}") from e

    if result.degraded:
        logger.warning(f"Translations for {entity} completed with fallback text")
    return result


def translate_plant(provider: TranslationProvider, name: str, description: Optional[str] = "",
                    care_instructions: Optional[str] = "") -> TranslationResult:
    return translate_fields(
        provider,
        {"name": name, "description": description, "care_instructions": care_instructions},
        entity="plant",
    )


def translate_category(provider: TranslationProvider, name: str,
                       description: Optional[str] = "") -> TranslationResult:
    return translate_fields(provider, {"name": name, "description": description}, entity="category")
