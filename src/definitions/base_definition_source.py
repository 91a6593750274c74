# src/definitions/base_definition_source.py - v1
"""Abstract source of intent and custom entity definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from nlucore.core.models import EntityDefinition, IntentDefinition


class BaseDefinitionSource(ABC):
    """Read-only access to the bot's NLU content."""

    @abstractmethod
    async def get_intents(self) -> list[IntentDefinition]:
        """All intent definitions of the bot."""

    @abstractmethod
    async def get_intent(self, name: str) -> IntentDefinition:
        """One intent by name. Raises KeyError if unknown."""

    @abstractmethod
    async def get_custom_entities(self) -> list[EntityDefinition]:
        """Pattern and list entity definitions of the bot."""
