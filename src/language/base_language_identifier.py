# src/language/base_language_identifier.py - v1
"""Abstract language identifier."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseLanguageIdentifier(ABC):
    """Detects the language of a piece of text."""

    @abstractmethod
    async def identify(self, text: str) -> str | None:
        """ISO 639-1 code, or None / ``"n/a"`` when undetermined."""
