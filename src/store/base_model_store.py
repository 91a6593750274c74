# src/store/base_model_store.py - v1
"""Abstract model store interface and artifact selection rules.

Backends only persist and return artifacts; which artifacts a load uses is
decided here so every backend behaves the same.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nlucore.core.models import ModelArtifact, ModelType


class BaseModelStore(ABC):
    """Unified interface for model artifact storage backends."""

    @abstractmethod
    async def model_exists(self, model_hash: str, language: str) -> bool:
        """True if any artifact was persisted for (hash, language)."""

    @abstractmethod
    async def get_models_from_hash(self, model_hash: str, language: str) -> list[ModelArtifact]:
        """Return every artifact persisted for (hash, language)."""

    @abstractmethod
    async def persist_models(self, artifacts: list[ModelArtifact], language: str) -> None:
        """Persist artifacts. Existing artifacts are never modified."""

    @abstractmethod
    async def list_hashes(self, language: str) -> list[str]:
        """List the distinct hashes stored for a language."""

    @abstractmethod
    async def prune(self, keep_hash: str, language: str) -> int:
        """Delete artifacts of every other hash. Returns the number removed."""

    def close(self) -> None:
        """Release backend resources (no-op by default)."""


def select_intent_artifacts(artifacts: list[ModelArtifact]) -> list[ModelArtifact]:
    """Intent artifacts, newest first, one per (hash, type, context)."""
    intent_models = [a for a in artifacts if a.meta.type in ModelType.INTENT]
    intent_models.sort(key=lambda a: a.meta.created_on, reverse=True)

    seen: set[tuple[str, str, str]] = set()
    selected: list[ModelArtifact] = []
    for artifact in intent_models:
        key = (artifact.meta.hash, artifact.meta.type, artifact.meta.context)
        if key in seen:
            continue
        seen.add(key)
        selected.append(artifact)
    return selected


def find_artifact(artifacts: list[ModelArtifact], model_type: str) -> ModelArtifact | None:
    """Newest artifact of a given type, or None."""
    matching = [a for a in artifacts if a.meta.type == model_type]
    if not matching:
        return None
    return max(matching, key=lambda a: a.meta.created_on)
