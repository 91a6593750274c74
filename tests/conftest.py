# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides in-memory collaborators (tokenizer, language identifier, learners,
definition source) and sample intent definitions. No external services.
"""

from __future__ import annotations

import json
import logging
import re

import pytest

from nlucore.config.settings import Settings
from nlucore.core.models import (
    DEFAULT_CONTEXT,
    EntityDefinition,
    Intent,
    IntentDefinition,
    ListOccurrence,
    ModelArtifact,
    ModelType,
    Sequence,
    Slot,
    SlotDefinition,
    SlotTaggerModels,
    make_artifact,
)
from nlucore.definitions.base_definition_source import BaseDefinitionSource
from nlucore.language.base_language_identifier import BaseLanguageIdentifier
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.ml.base_intent_classifier import BaseIntentClassifier
from nlucore.ml.base_slot_tagger import BaseSlotTagger

_TOKEN = re.compile(r"\s+|\w+|[^\w\s]")


# === FAKE COLLABORATORS ===


class FakeLanguageProvider(BaseLanguageProvider):
    """Splits on words, whitespace runs and single punctuation marks."""

    def __init__(self) -> None:
        self.tokenize_calls = 0

    async def tokenize(self, texts: list[str], language: str) -> list[list[str]]:
        self.tokenize_calls += 1
        return [_TOKEN.findall(text) for text in texts]

    async def vectorize(self, tokens: list[str], language: str) -> list[list[float]]:
        return [[float(len(t))] for t in tokens]

    async def generate_similar_junk_words(self, vocab: list[str], language: str) -> list[str]:
        return [word[::-1] for word in vocab]


class FakeLanguageIdentifier(BaseLanguageIdentifier):
    def __init__(self, language: str | None = "en") -> None:
        self.language = language

    async def identify(self, text: str) -> str | None:
        return self.language


class FakeClassifier(BaseIntentClassifier):
    """Records train/load calls; predict returns ``predictions``."""

    def __init__(self, language: str) -> None:
        self.language = language
        self.train_calls = 0
        self.load_calls = 0
        self.predict_calls = 0
        self.loaded: list[ModelArtifact] = []
        self.predictions: list[Intent] = []
        self.fail_train = False

    async def train(self, intents: list[IntentDefinition], model_hash: str) -> list[ModelArtifact]:
        self.train_calls += 1
        if self.fail_train:
            raise RuntimeError("classifier exploded")
        contexts = sorted({c for i in intents for c in i.contexts}) or [DEFAULT_CONTEXT]
        payload = json.dumps(sorted(i.name for i in intents)).encode()
        return [make_artifact(ctx, model_hash, payload, ModelType.INTENT_L1) for ctx in contexts]

    async def load(self, artifacts: list[ModelArtifact]) -> None:
        self.load_calls += 1
        self.loaded = list(artifacts)

    async def predict(self, tokens: list[str], contexts: list[str]) -> list[Intent]:
        self.predict_calls += 1
        if not self.loaded:
            raise RuntimeError("classifier not loaded")
        return list(self.predictions)


class FakeTagger(BaseSlotTagger):
    """Records calls; extract returns ``slots``."""

    def __init__(self, language: str) -> None:
        self.language = language
        self.train_calls = 0
        self.load_calls = 0
        self.extract_calls = 0
        self.loaded_sequences: list[Sequence] = []
        self.slots: list[Slot] = []

    async def train(self, sequences: list[Sequence]) -> SlotTaggerModels:
        self.train_calls += 1
        return SlotTaggerModels(language=b"language-model", crf=b"crf-model")

    async def load(
        self, sequences: list[Sequence], language_payload: bytes, crf_payload: bytes
    ) -> None:
        self.load_calls += 1
        self.loaded_sequences = list(sequences)

    async def extract(self, text, language, intent_def, entities, tokens) -> list[Slot]:
        self.extract_calls += 1
        return list(self.slots)


class InMemoryDefinitionSource(BaseDefinitionSource):
    def __init__(
        self,
        intents: list[IntentDefinition],
        entities: list[EntityDefinition] | None = None,
    ) -> None:
        self.intents = list(intents)
        self.entities = list(entities or [])

    async def get_intents(self) -> list[IntentDefinition]:
        return list(self.intents)

    async def get_intent(self, name: str) -> IntentDefinition:
        for intent in self.intents:
            if intent.name == name:
                return intent
        raise KeyError(name)

    async def get_custom_entities(self) -> list[EntityDefinition]:
        return list(self.entities)


class Learners:
    """Per-language fake learners handed out by the factories."""

    def __init__(self) -> None:
        self.classifiers: dict[str, FakeClassifier] = {}
        self.taggers: dict[str, FakeTagger] = {}

    def classifier(self, language: str) -> FakeClassifier:
        return self.classifiers.setdefault(language, FakeClassifier(language))

    def tagger(self, language: str) -> FakeTagger:
        return self.taggers.setdefault(language, FakeTagger(language))


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_intents() -> list[IntentDefinition]:
    """Two trainable intents in English, one too small to train."""
    return [
        IntentDefinition(
            name="book_flight",
            utterances={
                "en": [
                    "book a flight to [paris](city)",
                    "I want to fly to [new york](city)",
                    "get me a ticket to [rome](city) please",
                ],
            },
            slots=[SlotDefinition(name="city", entities=["city"])],
        ),
        IntentDefinition(
            name="greet",
            utterances={"en": ["hello", "hi there", "good morning"]},
            contexts=["global", "smalltalk"],
        ),
        IntentDefinition(
            name="cancel",
            utterances={"en": ["cancel it", "stop"]},
        ),
    ]


@pytest.fixture
def sample_entities() -> list[EntityDefinition]:
    return [
        EntityDefinition(
            name="city",
            type="list",
            occurrences=[
                ListOccurrence(name="paris", synonyms=["city of light"]),
                ListOccurrence(name="new york", synonyms=["nyc"]),
                ListOccurrence(name="rome"),
            ],
        ),
        EntityDefinition(name="flight_no", type="pattern", pattern=r"[a-z]{2}\d{3,4}"),
    ]


# === FIXTURES: Collaborators ===


@pytest.fixture
def provider() -> FakeLanguageProvider:
    return FakeLanguageProvider()


@pytest.fixture
def identifier() -> FakeLanguageIdentifier:
    return FakeLanguageIdentifier("en")


@pytest.fixture
def learners() -> Learners:
    return Learners()


@pytest.fixture
def learners_factory() -> type[Learners]:
    """Fresh learners, e.g. to simulate a restarted process."""
    return Learners


@pytest.fixture
def definitions(sample_intents, sample_entities) -> InMemoryDefinitionSource:
    return InMemoryDefinitionSource(sample_intents, sample_entities)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        bot_id="test-bot",
        languages=["en", "fr"],
        default_language="en",
        model_store_root=tmp_path / "models",
        retry_interval_s=0.01,
        retry_max_interval_s=0.02,
        retry_timeout_s=2.0,
    )


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """setup_logging() configures the package logger; undo it between tests."""
    yield
    package_logger = logging.getLogger("nlucore")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)
