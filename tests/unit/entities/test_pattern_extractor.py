# tests/unit/entities/test_pattern_extractor.py - v1
"""Tests for entities/pattern_extractor.py - pattern and list entities."""

from __future__ import annotations

import pytest

from nlucore.core.models import EntityDefinition, ListOccurrence
from nlucore.entities.pattern_extractor import PatternEntityExtractor
from nlucore.pipeline.state import ExtractionState


def _state(text: str) -> ExtractionState:
    return ExtractionState(raw_text=text, lower_text=text.lower())


@pytest.fixture
def extractor() -> PatternEntityExtractor:
    return PatternEntityExtractor()


class TestExtractPatterns:
    @pytest.mark.asyncio
    async def test_regex_matches(self, extractor, sample_entities):
        entities = await extractor.extract_patterns("flight af1234 or ba567", sample_entities)
        assert [e.data.value for e in entities] == ["af1234", "ba567"]
        first = entities[0]
        assert first.type == "pattern"
        assert first.name == "flight_no"
        assert (first.meta.start, first.meta.end) == (7, 13)

    @pytest.mark.asyncio
    async def test_case_sensitive(self, extractor):
        definition = EntityDefinition(name="code", type="pattern", pattern="AB", matchCase=True)
        assert await extractor.extract_patterns("ab AB", [definition]) != []
        entities = await extractor.extract_patterns("ab AB", [definition])
        assert [e.meta.start for e in entities] == [3]

    @pytest.mark.asyncio
    async def test_invalid_regex_skipped(self, extractor):
        bad = EntityDefinition(name="bad", type="pattern", pattern="(")
        good = EntityDefinition(name="num", type="pattern", pattern=r"\d+")
        entities = await extractor.extract_patterns("room 12", [bad, good])
        assert [e.name for e in entities] == ["num"]

    @pytest.mark.asyncio
    async def test_sensitive_flag_copied(self, extractor):
        definition = EntityDefinition(name="pin", type="pattern", pattern=r"\d{4}", sensitive=True)
        [entity] = await extractor.extract_patterns("pin 1234", [definition])
        assert entity.sensitive is True


class TestExtractLists:
    @pytest.mark.asyncio
    async def test_synonym_resolves_to_occurrence(self, extractor, sample_entities):
        entities = await extractor.extract_lists(_state("Fly to NYC please"), sample_entities)
        assert len(entities) == 1
        assert entities[0].data.value == "new york"
        assert entities[0].meta.source == "NYC"
        assert entities[0].type == "list"

    @pytest.mark.asyncio
    async def test_whole_words_only(self, extractor, sample_entities):
        assert await extractor.extract_lists(_state("romeo"), sample_entities) == []

    @pytest.mark.asyncio
    async def test_longest_match_wins(self, extractor):
        definition = EntityDefinition(
            name="place",
            type="list",
            occurrences=[ListOccurrence(name="york"), ListOccurrence(name="new york")],
        )
        entities = await extractor.extract_lists(_state("to new york"), [definition])
        assert [e.data.value for e in entities] == ["new york"]

    @pytest.mark.asyncio
    async def test_match_case(self, extractor):
        definition = EntityDefinition(
            name="brand", type="list", matchCase=True, occurrences=[ListOccurrence(name="Apple")]
        )
        assert await extractor.extract_lists(_state("an apple"), [definition]) == []
        assert len(await extractor.extract_lists(_state("an Apple"), [definition])) == 1
