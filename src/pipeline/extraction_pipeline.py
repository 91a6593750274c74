# src/pipeline/extraction_pipeline.py - v1
"""Six ordered extraction stages from raw text to intent and slots.

    language -> tokenize -> entities -> sanitize -> intents -> slots

Each stage takes an ExtractionState and returns a new one. Collaborator
failures are wrapped in ExtractionStageFailed (the only error the retry
policy retries); bugs in stage logic propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from nlucore.core.errors import ExtractionStageFailed
from nlucore.core.text import get_text_without_entities, sanitize
from nlucore.definitions.base_definition_source import BaseDefinitionSource
from nlucore.engine.registry import ModelRegistry
from nlucore.entities.base_entity_extractor import (
    BaseCustomEntityExtractor,
    BaseSystemEntityExtractor,
)
from nlucore.intents.selection import find_most_confident_intent, rank_intents
from nlucore.language.base_language_identifier import BaseLanguageIdentifier
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.logging.context import set_language_context, set_stage_context
from nlucore.pipeline.state import ExtractionState

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "n/a"

Stage = Callable[[ExtractionState], Awaitable[ExtractionState]]
Checkpoint = Callable[[ExtractionState], None]


class ExtractionPipeline:
    """Run the extraction stages for one request at a time.

    The pipeline holds no per-request data, so one instance serves any
    number of concurrent runs.

    Args:
        languages: Configured languages.
        default_language: Fallback for absent or unsupported detections.
        confidence_threshold: Threshold of the intent tie-break policy.
        registry: Per-language loaded models.
        language_identifier: Detects the language of raw text.
        language_provider: Tokenizer service.
        custom_entities: Pattern and list entity extractor.
        system_entities: Built-in entity extractor.
        definitions: Intent and entity definitions.
    """

    def __init__(
        self,
        *,
        languages: list[str],
        default_language: str,
        confidence_threshold: float,
        registry: ModelRegistry,
        language_identifier: BaseLanguageIdentifier,
        language_provider: BaseLanguageProvider,
        custom_entities: BaseCustomEntityExtractor,
        system_entities: BaseSystemEntityExtractor,
        definitions: BaseDefinitionSource,
    ) -> None:
        self._languages = languages
        self._default_language = default_language
        self._threshold = confidence_threshold
        self._registry = registry
        self._identifier = language_identifier
        self._provider = language_provider
        self._custom_entities = custom_entities
        self._system_entities = system_entities
        self._definitions = definitions

        self._stages: list[tuple[str, Stage]] = [
            ("language", self.detect_language),
            ("tokenize", self.tokenize),
            ("entities", self.extract_entities),
            ("sanitize", self.sanitize_text),
            ("intents", self.extract_intents),
            ("slots", self.extract_slots),
        ]

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self._stages]

    async def run(
        self, state: ExtractionState, checkpoint: Checkpoint | None = None
    ) -> ExtractionState:
        """Run every stage in order.

        Args:
            state: Fresh state holding the raw text and included contexts.
            checkpoint: Called with the state after each completed stage,
                so a caller can keep the best partial result on failure.
        """
        try:
            for name, stage in self._stages:
                set_stage_context(name)
                state = await stage(state)
                if checkpoint is not None:
                    checkpoint(state)
        finally:
            set_stage_context(None)
        return state

    # --- Stages ---

    async def detect_language(self, state: ExtractionState) -> ExtractionState:
        detected = await _call("language", self._identifier.identify(state.raw_text))
        language = detected
        if not language or language == UNKNOWN_LANGUAGE or language not in self._languages:
            logger.debug(
                "Detected language %r not supported, using '%s'",
                detected, self._default_language,
            )
            language = self._default_language
        set_language_context(language)
        return state.evolve(detected_language=detected, language=language)

    async def tokenize(self, state: ExtractionState) -> ExtractionState:
        lower_text = sanitize(state.raw_text).lower()
        tokenized = await _call(
            "tokenize", self._provider.tokenize([lower_text], state.language)
        )
        tokens = [sanitize(t) for t in tokenized[0]] if tokenized else []
        return state.evolve(lower_text=lower_text, tokens=tokens)

    async def extract_entities(self, state: ExtractionState) -> ExtractionState:
        definitions = await _call("entities", self._definitions.get_custom_entities())
        patterns = [d for d in definitions if d.type == "pattern"]
        lists = [d for d in definitions if d.type == "list"]

        system = await _call(
            "entities", self._system_entities.extract(state.lower_text, state.language)
        )
        pattern_matches = await _call(
            "entities", self._custom_entities.extract_patterns(state.lower_text, patterns)
        )
        list_matches = await _call(
            "entities", self._custom_entities.extract_lists(state, lists)
        )
        return state.evolve(entities=[*system, *pattern_matches, *list_matches])

    async def sanitize_text(self, state: ExtractionState) -> ExtractionState:
        text = get_text_without_entities(state.entities, state.raw_text).lower()
        return state.evolve(sanitized_text=text)

    async def extract_intents(self, state: ExtractionState) -> ExtractionState:
        models = self._registry.get(state.language)

        if models.exact_matcher is not None:
            exact = models.exact_matcher.exact_match(
                state.sanitized_text, state.included_contexts
            )
            if exact is not None:
                logger.debug("Exact match on intent '%s'", exact.name)
                return state.evolve(intent=exact, intents=[exact])

        predictions = await _call(
            "intents", models.classifier.predict(state.tokens, state.included_contexts)
        )
        ranked = rank_intents(predictions)
        intent = find_most_confident_intent(ranked, self._threshold)

        included = state.included_contexts
        if not included:
            included = list(dict.fromkeys(i.context for i in ranked if i.context))
        return state.evolve(intents=ranked, intent=intent, included_contexts=included)

    async def extract_slots(self, state: ExtractionState) -> ExtractionState:
        if state.intent is None or state.intent.is_none:
            return state.evolve(slots=[])

        try:
            definition = await self._definitions.get_intent(state.intent.name)
        except KeyError:
            # Models predate the last definition change; the next sync drops the intent.
            logger.warning(
                "Intent '%s' has no definition, skipping slot extraction", state.intent.name
            )
            return state.evolve(slots=[])
        except Exception as e:
            raise ExtractionStageFailed("slots", e) from e

        tagger = self._registry.get(state.language).tagger
        slots = await _call(
            "slots",
            tagger.extract(
                state.lower_text, state.language, definition, state.entities, state.tokens
            ),
        )
        return state.evolve(slots=slots)


async def _call(stage: str, awaitable: Awaitable[Any]) -> Any:
    """Await a collaborator call, wrapping its failure as retryable."""
    try:
        return await awaitable
    except ExtractionStageFailed:
        raise
    except Exception as e:
        raise ExtractionStageFailed(stage, e) from e
