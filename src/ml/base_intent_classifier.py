# src/ml/base_intent_classifier.py - v1
"""Abstract statistical intent classifier (one instance per language)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from nlucore.core.models import Intent, IntentDefinition, ModelArtifact


class BaseIntentClassifier(ABC):
    """Train/load/predict contract for the per-language intent classifier."""

    @abstractmethod
    async def train(
        self, intents: list[IntentDefinition], model_hash: str
    ) -> list[ModelArtifact]:
        """Fit on the trainable intents and return artifacts tagged with the hash."""

    @abstractmethod
    async def load(self, artifacts: list[ModelArtifact]) -> None:
        """Replace the in-memory model with the given intent artifacts."""

    @abstractmethod
    async def predict(self, tokens: list[str], contexts: list[str]) -> list[Intent]:
        """Rank intents for the tokens, restricted to contexts (all if empty)."""
