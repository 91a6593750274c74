# tests/unit/engine/test_engine.py - v1
"""Tests for engine/engine.py - NLUEngine host surface."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from nlucore.core.models import NONE_INTENT, Intent, Slot
from nlucore.engine.engine import NLUEngine
from nlucore.entities.base_entity_extractor import BaseSystemEntityExtractor
from nlucore.store.base_model_store import BaseModelStore


@pytest.fixture
def make_engine(settings, definitions, provider, identifier, learners):
    def _make(settings=settings, **overrides) -> NLUEngine:
        params = dict(
            definitions=definitions,
            language_provider=provider,
            language_identifier=identifier,
            classifier_factory=learners.classifier,
            tagger_factory=learners.tagger,
        )
        params.update(overrides)
        return NLUEngine(settings, **params)

    return _make


class TestInit:
    @pytest.mark.asyncio
    async def test_preload(self, make_engine, learners):
        engine = make_engine()
        await engine.init()
        assert engine.primed is True
        assert engine.model_hash is not None
        assert learners.classifiers["en"].train_calls == 1
        await engine.close()

    @pytest.mark.asyncio
    async def test_no_preload(self, make_engine, settings, learners):
        engine = make_engine(settings=settings.model_copy(update={"preload_models": False}))
        await engine.init()
        assert engine.primed is False
        assert learners.classifiers["en"].train_calls == 0
        await engine.close()

    @pytest.mark.asyncio
    async def test_is_sync_needed(self, make_engine, definitions):
        engine = make_engine()
        assert await engine.is_sync_needed() is True
        await engine.ensure_models_ready()
        assert await engine.is_sync_needed() is False
        await engine.close()


class TestExtract:
    @pytest.mark.asyncio
    async def test_primes_on_first_extract(self, make_engine, learners):
        engine = make_engine()
        learners.classifier("en").predictions = [Intent(name="book_flight", confidence=0.95)]
        slot = Slot(name="city", value="rome", source="rome")
        learners.tagger("en").slots = [slot]

        result = await engine.extract("i would fly to rome")

        assert engine.primed is True
        assert result.errored is False
        assert result.intent.name == "book_flight"
        assert result.slots == [slot]
        assert result.language == "en"
        assert result.ms >= 0
        await engine.close()

    @pytest.mark.asyncio
    async def test_exact_match_beats_classifier(self, make_engine, learners):
        engine = make_engine()
        await engine.init()
        learners.classifiers["en"].predictions = [Intent(name="book_flight", confidence=0.99)]
        result = await engine.extract("Good morning")
        assert result.intent.name == "greet"
        assert result.intent.confidence == 1.0
        await engine.close()

    @pytest.mark.asyncio
    async def test_none_intent_has_no_slots(self, make_engine, learners):
        engine = make_engine()
        await engine.init()
        learners.classifiers["en"].predictions = [
            Intent(name="book_flight", confidence=0.9),
            Intent(name="greet", confidence=0.89),
        ]
        learners.taggers["en"].slots = [Slot(name="city", value="x", source="x")]
        result = await engine.extract("hmm")
        assert result.intent.name == NONE_INTENT
        assert result.slots == []
        assert learners.taggers["en"].extract_calls == 0
        await engine.close()

    @pytest.mark.asyncio
    async def test_errored_result_has_timing_and_partial_state(self, make_engine):
        failing = AsyncMock(spec=BaseSystemEntityExtractor)
        failing.extract.side_effect = ConnectionError("down")
        engine = make_engine(system_entities=failing)
        await engine.init()

        result = await engine.extract("Hello you")

        assert result.errored is True
        assert isinstance(result.ms, int)
        assert result.ms >= 0
        assert result.language == "en"
        assert result.intent is None
        assert failing.extract.await_count == engine.settings.retry_max_tries
        await engine.close()

    @pytest.mark.asyncio
    async def test_never_raises_on_bug(self, make_engine, learners, monkeypatch):
        engine = make_engine()
        await engine.init()
        monkeypatch.setattr(engine._pipeline, "run", AsyncMock(side_effect=KeyError("bug")))
        result = await engine.extract("anything")
        assert result.errored is True
        assert result.ms >= 0
        await engine.close()

    @pytest.mark.asyncio
    async def test_stale_intent_not_retried(self, make_engine, learners, definitions):
        engine = make_engine()
        await engine.init()
        definitions.intents = [i for i in definitions.intents if i.name != "book_flight"]
        learners.classifiers["en"].predictions = [Intent(name="book_flight", confidence=0.95)]

        result = await engine.extract("fly away")

        assert result.errored is False
        assert result.intent.name == "book_flight"
        assert result.slots == []
        assert learners.classifiers["en"].predict_calls == 1
        await engine.close()

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, make_engine, learners):
        flaky = AsyncMock(spec=BaseSystemEntityExtractor)
        flaky.extract.side_effect = [ConnectionError("blip"), []]
        engine = make_engine(system_entities=flaky)
        await engine.init()
        learners.classifiers["en"].predictions = [Intent(name="greet", confidence=0.9)]
        result = await engine.extract("hey")
        assert result.errored is False
        assert result.intent.name == "greet"
        await engine.close()

    @pytest.mark.asyncio
    async def test_included_contexts_reported(self, make_engine, learners):
        engine = make_engine()
        await engine.init()
        learners.classifiers["en"].predictions = [
            Intent(name="greet", context="smalltalk", confidence=0.9)
        ]
        result = await engine.extract("yo")
        assert result.included_contexts == ["smalltalk"]
        await engine.close()


class TestClose:
    @pytest.mark.asyncio
    async def test_releases_store(self, make_engine):
        store = MagicMock(spec=BaseModelStore)
        engine = make_engine(store=store)
        await engine.close()
        store.close.assert_called_once()
