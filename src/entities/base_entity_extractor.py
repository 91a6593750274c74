# src/entities/base_entity_extractor.py - v1
"""Abstract entity extractors: custom (pattern/list) and system."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from nlucore.core.models import Entity, EntityDefinition

if TYPE_CHECKING:
    from nlucore.pipeline.state import ExtractionState


class BaseCustomEntityExtractor(ABC):
    """Extracts bot-defined pattern and list entities."""

    @abstractmethod
    async def extract_patterns(self, text: str, definitions: list[EntityDefinition]) -> list[Entity]:
        """Regex matches of pattern entities in text."""

    @abstractmethod
    async def extract_lists(
        self, state: ExtractionState, definitions: list[EntityDefinition]
    ) -> list[Entity]:
        """Occurrence/synonym matches of list entities in the state's text."""


class BaseSystemEntityExtractor(ABC):
    """Extracts built-in entities (numbers, dates, amounts...)."""

    @abstractmethod
    async def extract(self, text: str, language: str) -> list[Entity]:
        """System entity matches in text."""
