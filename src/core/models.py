# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

Definitions (intents, slots, custom entities) come from the bot's content;
predictions (intents, entities, slots) are produced by the extraction
pipeline; artifacts are produced by training and persisted by the model store.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NONE_INTENT = "none"
DEFAULT_CONTEXT = "global"


# === DEFINITIONS ===


class SlotDefinition(BaseModel):
    """Slot declared on an intent; ``entities`` lists the types that can fill it."""

    name: str
    entities: list[str] = Field(default_factory=list)
    color: int | None = None
    id: str | None = None


class IntentDefinition(BaseModel):
    """Training source for one intent.

    Utterances are keyed by language code and may carry slot markup of the
    form ``[value](slot_name)``.
    """

    name: str
    utterances: dict[str, list[str]] = Field(default_factory=dict)
    slots: list[SlotDefinition] = Field(default_factory=list)
    contexts: list[str] = Field(default_factory=lambda: [DEFAULT_CONTEXT])

    def utterances_for(self, language: str) -> list[str]:
        """Return the utterances for a language (empty if none)."""
        return self.utterances.get(language) or []

    def allowed_entities(self) -> list[str]:
        """Entity types usable by any slot of this intent, in declaration order."""
        seen: list[str] = []
        for slot in self.slots:
            for entity in slot.entities:
                if entity not in seen:
                    seen.append(entity)
        return seen


class ListOccurrence(BaseModel):
    """One canonical value of a list entity with its synonyms."""

    name: str
    synonyms: list[str] = Field(default_factory=list)


class EntityDefinition(BaseModel):
    """Custom entity declared by the bot (pattern or list)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: Literal["pattern", "list"]
    pattern: str | None = None
    occurrences: list[ListOccurrence] = Field(default_factory=list)
    match_case: bool = Field(default=False, alias="matchCase")
    sensitive: bool = False


# === PREDICTIONS ===


class EntityMeta(BaseModel):
    """Where and how an entity was found in the text."""

    confidence: float = 1.0
    provider: str
    source: str
    start: int
    end: int
    raw: dict[str, Any] = Field(default_factory=dict)


class EntityData(BaseModel):
    """Resolved entity value."""

    value: Any
    unit: str | None = None
    extras: dict[str, Any] = Field(default_factory=dict)


class Entity(BaseModel):
    """Entity match produced by a system, pattern or list extractor."""

    type: Literal["system", "pattern", "list"]
    name: str
    meta: EntityMeta
    data: EntityData
    sensitive: bool = False


class Intent(BaseModel):
    """Classified intent with the context it was predicted in."""

    name: str
    context: str = DEFAULT_CONTEXT
    confidence: float = 0.0

    def matches(self, pattern: str) -> bool:
        """Case-insensitive wildcard match on the intent name.

        ``*`` stands for one or more characters, e.g. ``"book_*"``.
        """
        parts = [re.escape(p) for p in pattern.split("*")]
        regex = re.compile("^" + ".+?".join(parts) + "$", re.IGNORECASE)
        return regex.match(self.name) is not None

    @property
    def is_none(self) -> bool:
        return self.name == NONE_INTENT


def none_intent(context: str = DEFAULT_CONTEXT) -> Intent:
    """The reserved intent returned when no prediction is confident enough."""
    return Intent(name=NONE_INTENT, context=context, confidence=1.0)


class Slot(BaseModel):
    """Slot value tagged in an utterance."""

    name: str
    value: Any
    source: str
    entity: Entity | None = None
    confidence: float = 1.0
    start: int = 0
    end: int = 0


# === TRAINING ===


class Token(BaseModel):
    """Feature-engineering view of a token.

    Built once by tokenization and entity matching; never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    index: int
    is_word: bool = True
    is_space: bool = False
    entities: tuple[str, ...] = ()
    cluster: int = 1
    tfidf: float = 1.0
    slot: str | None = None
    tag: str = "o"
    features: tuple[str, ...] = ()

    def to_string(self, lower_case: bool = False) -> str:
        return self.value.lower() if lower_case else self.value


class TrainingIntent(BaseModel):
    """Intent as seen by the feature engineer: name, vocabulary, allowed entities."""

    name: str
    contexts: list[str] = Field(default_factory=lambda: [DEFAULT_CONTEXT])
    vocab: set[str] = Field(default_factory=set)
    allowed_entities: list[str] = Field(default_factory=list)


class Sequence(BaseModel):
    """Engineered training example for one (utterance, intent, language)."""

    intent: str
    canonical: str
    language: str
    contexts: list[str] = Field(default_factory=lambda: [DEFAULT_CONTEXT])
    tokens: list[Token] = Field(default_factory=list)

    @property
    def tags(self) -> list[str]:
        return [t.tag for t in self.tokens]


# === MODEL ARTIFACTS ===


class ModelType:
    """Artifact type identifiers."""

    INTENT_L0 = "intent-l0"
    INTENT_L1 = "intent-l1"
    INTENT_TFIDF = "intent-tfidf"
    SLOT_LANGUAGE = "slot-language-model"
    SLOT_CRF = "slot-crf"

    INTENT: tuple[str, ...] = (INTENT_L0, INTENT_L1, INTENT_TFIDF)


class ModelMeta(BaseModel):
    """Artifact identity. (hash, type, context) is unique within a hash."""

    context: str
    created_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    hash: str
    type: str
    scope: str = "bot"


class ModelArtifact(BaseModel):
    """Immutable trained model payload tagged with the hash it was trained on."""

    model_config = ConfigDict(frozen=True)

    meta: ModelMeta
    payload: bytes


class SlotTaggerModels(BaseModel):
    """Binary output of slot tagger training."""

    language: bytes | None = None
    crf: bytes | None = None


def make_artifact(context: str, model_hash: str, payload: bytes, model_type: str) -> ModelArtifact:
    """Wrap a trained payload into a bot-scoped artifact."""
    return ModelArtifact(
        meta=ModelMeta(context=context, hash=model_hash, type=model_type),
        payload=payload,
    )
