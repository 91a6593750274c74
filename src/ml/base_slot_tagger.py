# src/ml/base_slot_tagger.py - v1
"""Abstract CRF-style sequence tagger (one instance per language)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from nlucore.core.models import Entity, IntentDefinition, Sequence, Slot, SlotTaggerModels


class BaseSlotTagger(ABC):
    """Train/load/extract contract for the per-language slot tagger."""

    @abstractmethod
    async def train(self, sequences: list[Sequence]) -> SlotTaggerModels:
        """Fit on engineered sequences; returns the language and CRF payloads."""

    @abstractmethod
    async def load(
        self, sequences: list[Sequence], language_payload: bytes, crf_payload: bytes
    ) -> None:
        """Restore the tagger from payloads plus the regenerated sequences."""

    @abstractmethod
    async def extract(
        self,
        text: str,
        language: str,
        intent_def: IntentDefinition,
        entities: list[Entity],
        tokens: list[str],
    ) -> list[Slot]:
        """Tag the tokens and return the slots of the intent's schema."""
