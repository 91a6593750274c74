# src/language/lingua_identifier.py - v1
"""Language identification backed by lingua-py.

The detector is restricted to the bot's languages when at least two are
configured, and built lazily on first use (model loading is slow).
"""

from __future__ import annotations

import logging
from typing import Any

from nlucore.language.base_language_identifier import BaseLanguageIdentifier

logger = logging.getLogger(__name__)


class LinguaLanguageIdentifier(BaseLanguageIdentifier):
    """BaseLanguageIdentifier using lingua's LanguageDetector."""

    def __init__(self, languages: list[str] | None = None) -> None:
        self._languages = [lang.lower() for lang in languages or []]
        self._detector: Any = None

    async def identify(self, text: str) -> str | None:
        if not text or not text.strip():
            return None
        language = self._get_detector().detect_language_of(text[:5000])
        if language is None:
            return None
        return language.iso_code_639_1.name.lower()

    def _get_detector(self) -> Any:
        if self._detector is None:
            from lingua import IsoCode639_1, LanguageDetectorBuilder

            codes = []
            for lang in self._languages:
                code = getattr(IsoCode639_1, lang.upper(), None)
                if code is None:
                    logger.warning("Language '%s' is unknown to lingua, ignoring it", lang)
                    continue
                codes.append(code)

            if len(codes) >= 2:
                builder = LanguageDetectorBuilder.from_iso_codes_639_1(*codes)
            else:
                builder = LanguageDetectorBuilder.from_all_languages()
            self._detector = builder.build()
        return self._detector
