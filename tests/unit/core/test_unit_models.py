# tests/unit/core/test_models.py - v1
"""Tests for core/models.py and core/errors.py."""

from __future__ import annotations

from datetime import timezone

from nlucore.core.errors import ExtractionStageFailed, ModelArtifactMissing, RetryExhausted
from nlucore.core.models import (
    DEFAULT_CONTEXT,
    NONE_INTENT,
    EntityDefinition,
    Intent,
    IntentDefinition,
    ModelType,
    SlotDefinition,
    Token,
    make_artifact,
    none_intent,
)


class TestIntentDefinition:
    def test_default_context(self):
        intent = IntentDefinition(name="greet")
        assert intent.contexts == [DEFAULT_CONTEXT]

    def test_utterances_for_missing_language(self):
        intent = IntentDefinition(name="greet", utterances={"en": ["hi"]})
        assert intent.utterances_for("en") == ["hi"]
        assert intent.utterances_for("fr") == []

    def test_allowed_entities_deduplicated_in_order(self):
        intent = IntentDefinition(
            name="book",
            slots=[
                SlotDefinition(name="from", entities=["city", "airport"]),
                SlotDefinition(name="to", entities=["airport", "city", "country"]),
            ],
        )
        assert intent.allowed_entities() == ["city", "airport", "country"]


class TestEntityDefinition:
    def test_match_case_alias(self):
        entity = EntityDefinition(name="code", type="pattern", pattern="x", matchCase=True)
        assert entity.match_case is True

    def test_match_case_by_name(self):
        entity = EntityDefinition(name="code", type="pattern", pattern="x", match_case=True)
        assert entity.match_case is True


class TestIntent:
    def test_wildcard_match(self):
        intent = Intent(name="book_flight", confidence=0.9)
        assert intent.matches("book_*")
        assert intent.matches("BOOK_FLIGHT")
        assert not intent.matches("cancel_*")

    def test_wildcard_needs_at_least_one_char(self):
        assert not Intent(name="book_").matches("book_*")

    def test_none_intent(self):
        intent = none_intent("smalltalk")
        assert intent.name == NONE_INTENT
        assert intent.context == "smalltalk"
        assert intent.confidence == 1.0
        assert intent.is_none

    def test_regular_intent_is_not_none(self):
        assert not Intent(name="greet").is_none


class TestToken:
    def test_to_string_lower(self):
        token = Token(value="Paris", index=0)
        assert token.to_string() == "Paris"
        assert token.to_string(lower_case=True) == "paris"

    def test_model_copy_keeps_original(self):
        token = Token(value="paris", index=0)
        weighted = token.model_copy(update={"tfidf": 2.0})
        assert token.tfidf == 1.0
        assert weighted.tfidf == 2.0


class TestArtifacts:
    def test_make_artifact(self):
        artifact = make_artifact("global", "h1", b"abc", ModelType.SLOT_CRF)
        assert artifact.meta.hash == "h1"
        assert artifact.meta.type == ModelType.SLOT_CRF
        assert artifact.meta.scope == "bot"
        assert artifact.meta.created_on.tzinfo == timezone.utc
        assert artifact.payload == b"abc"

    def test_intent_types(self):
        assert ModelType.INTENT_L0 in ModelType.INTENT
        assert ModelType.SLOT_CRF not in ModelType.INTENT


class TestErrors:
    def test_model_artifact_missing_names_type(self):
        err = ModelArtifactMissing(ModelType.SLOT_CRF, "h1", "en")
        assert "slot-crf" in str(err)
        assert err.language == "en"

    def test_retry_exhausted_keeps_stage(self):
        cause = ExtractionStageFailed("entities", RuntimeError("down"))
        err = RetryExhausted(3, cause)
        assert isinstance(err, ExtractionStageFailed)
        assert err.stage == "entities"
        assert err.attempts == 3
        assert "3 attempt" in str(err)

    def test_retry_exhausted_on_timeout(self):
        err = RetryExhausted(1, TimeoutError())
        assert err.stage == "pipeline"
