# src/entities/pattern_extractor.py - v1
"""Custom entity extraction: regex patterns and list occurrences.

List matching is whole-word and case-insensitive unless the definition asks
for ``matchCase``; when candidates overlap the longest one wins.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from nlucore.core.models import Entity, EntityData, EntityDefinition, EntityMeta
from nlucore.entities.base_entity_extractor import BaseCustomEntityExtractor

if TYPE_CHECKING:
    from nlucore.pipeline.state import ExtractionState

logger = logging.getLogger(__name__)


class PatternEntityExtractor(BaseCustomEntityExtractor):
    """Default pattern/list extractor."""

    async def extract_patterns(self, text: str, definitions: list[EntityDefinition]) -> list[Entity]:
        entities: list[Entity] = []
        for definition in definitions:
            if definition.type != "pattern" or not definition.pattern:
                continue
            flags = 0 if definition.match_case else re.IGNORECASE
            try:
                regex = re.compile(definition.pattern, flags)
            except re.error as e:
                logger.warning("Invalid pattern for entity '%s': %s", definition.name, e)
                continue

            for match in regex.finditer(text):
                if match.end() == match.start():
                    continue
                entities.append(
                    _make_entity("pattern", definition, match.group(0), match.start(), match.end(), match.group(0))
                )
        return entities

    async def extract_lists(
        self, state: ExtractionState, definitions: list[EntityDefinition]
    ) -> list[Entity]:
        entities: list[Entity] = []
        for definition in definitions:
            if definition.type != "list":
                continue
            text = state.raw_text if definition.match_case else state.lower_text
            candidates: list[tuple[int, int, str]] = []
            for occurrence in definition.occurrences:
                for surface in [occurrence.name, *occurrence.synonyms]:
                    if not surface.strip():
                        continue
                    needle = surface if definition.match_case else surface.lower()
                    regex = re.compile(rf"(?<!\w){re.escape(needle)}(?!\w)")
                    for match in regex.finditer(text):
                        candidates.append((match.start(), match.end(), occurrence.name))

            for start, end, value in _longest_non_overlapping(candidates):
                entities.append(
                    _make_entity("list", definition, value, start, end, state.raw_text[start:end])
                )
        return entities


def _longest_non_overlapping(candidates: list[tuple[int, int, str]]) -> list[tuple[int, int, str]]:
    kept: list[tuple[int, int, str]] = []
    for candidate in sorted(candidates, key=lambda c: (-(c[1] - c[0]), c[0])):
        start, end, _ = candidate
        if all(end <= k[0] or start >= k[1] for k in kept):
            kept.append(candidate)
    return sorted(kept)


def _make_entity(
    kind: str, definition: EntityDefinition, value: str, start: int, end: int, source: str
) -> Entity:
    return Entity(
        type=kind,  # type: ignore[arg-type]
        name=definition.name,
        meta=EntityMeta(confidence=1.0, provider=kind, source=source, start=start, end=end),
        data=EntityData(value=value),
        sensitive=definition.sensitive,
    )
