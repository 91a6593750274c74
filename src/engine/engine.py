# src/engine/engine.py - v1
"""NLUEngine: the host-facing surface of one bot's NLU.

Wires the collaborators together once, at construction, from the validated
settings: a ModelRegistry keyed by language, the orchestrator that keeps it
loaded, and the extraction pipeline that reads from it.
"""

from __future__ import annotations

import logging
import time

from nlucore.api.models import ExtractionResult
from nlucore.config.settings import Settings
from nlucore.definitions.base_definition_source import BaseDefinitionSource
from nlucore.engine.orchestrator import ModelOrchestrator
from nlucore.engine.registry import ClassifierFactory, ModelRegistry, TaggerFactory
from nlucore.entities.base_entity_extractor import (
    BaseCustomEntityExtractor,
    BaseSystemEntityExtractor,
)
from nlucore.entities.duckling_extractor import DucklingEntityExtractor
from nlucore.entities.pattern_extractor import PatternEntityExtractor
from nlucore.language.base_language_identifier import BaseLanguageIdentifier
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.logging.context import (
    clear_request_context,
    set_bot_context,
    set_request_context,
)
from nlucore.pipeline.extraction_pipeline import ExtractionPipeline
from nlucore.pipeline.retry import RetryPolicy, with_retry
from nlucore.pipeline.state import ExtractionState
from nlucore.store.base_model_store import BaseModelStore
from nlucore.store.store_factory import create_model_store

logger = logging.getLogger(__name__)


class NLUEngine:
    """Per-bot NLU engine.

    Args:
        settings: Validated engine settings.
        definitions: Intent and entity definition source.
        language_provider: Tokenizer/vectorizer service.
        language_identifier: Language detector.
        classifier_factory: Builds the intent classifier of a language.
        tagger_factory: Builds the slot tagger of a language.
        custom_entities: Pattern/list extractor. Defaults to the regex one.
        system_entities: System entity extractor. Defaults to Duckling,
            disabled unless ``duckling_enabled``.
        store: Model store. Defaults to the configured backend.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        definitions: BaseDefinitionSource,
        language_provider: BaseLanguageProvider,
        language_identifier: BaseLanguageIdentifier,
        classifier_factory: ClassifierFactory,
        tagger_factory: TaggerFactory,
        custom_entities: BaseCustomEntityExtractor | None = None,
        system_entities: BaseSystemEntityExtractor | None = None,
        store: BaseModelStore | None = None,
    ) -> None:
        self._settings = settings
        self._store = store or create_model_store(settings)
        self._system_entities = system_entities or DucklingEntityExtractor(
            enabled=settings.duckling_enabled,
            url=settings.duckling_url,
            timeout=settings.duckling_timeout_s,
        )
        self._registry = ModelRegistry(settings.languages, classifier_factory, tagger_factory)
        self._orchestrator = ModelOrchestrator(
            settings=settings,
            registry=self._registry,
            definitions=definitions,
            language_provider=language_provider,
            store=self._store,
        )
        self._pipeline = ExtractionPipeline(
            languages=settings.languages,
            default_language=settings.default_language,
            confidence_threshold=settings.confidence_threshold,
            registry=self._registry,
            language_identifier=language_identifier,
            language_provider=language_provider,
            custom_entities=custom_entities or PatternEntityExtractor(),
            system_entities=self._system_entities,
            definitions=definitions,
        )
        self._retry = RetryPolicy.from_settings(settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def primed(self) -> bool:
        return self._orchestrator.primed

    @property
    def model_hash(self) -> str | None:
        return self._orchestrator.current_hash

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    @property
    def orchestrator(self) -> ModelOrchestrator:
        return self._orchestrator

    async def init(self) -> None:
        """Preload models (if configured) and start the staleness timer."""
        set_bot_context(self._settings.bot_id)
        if self._settings.preload_models:
            await self._orchestrator.ensure_models_ready()
        self._orchestrator.start_auto_train()

    async def ensure_models_ready(self, force_retrain: bool = False) -> str | None:
        return await self._orchestrator.ensure_models_ready(force_retrain)

    async def is_sync_needed(self) -> bool:
        return await self._orchestrator.is_sync_needed()

    async def extract(
        self, text: str, included_contexts: list[str] | None = None
    ) -> ExtractionResult:
        """Understand one utterance. Never raises.

        Args:
            text: Raw user text.
            included_contexts: Contexts to restrict intents to. Empty or
                None lets the classifier's contexts through.

        Returns:
            ExtractionResult, flagged ``errored`` when the pipeline gave up.
        """
        t0 = time.monotonic()
        state = ExtractionState(raw_text=text, included_contexts=list(included_contexts or []))
        set_request_context(state.request_id)

        latest = state
        errored = False

        def checkpoint(partial: ExtractionState) -> None:
            nonlocal latest
            latest = partial

        try:
            if not self._orchestrator.primed:
                await self._orchestrator.ensure_models_ready()
            latest = await with_retry(self._pipeline.run, state, checkpoint, policy=self._retry)
        except Exception as e:
            errored = True
            logger.error("Extraction failed: %s", e, exc_info=e)
        finally:
            ms = max(0, int((time.monotonic() - t0) * 1000))
            clear_request_context()

        return ExtractionResult.from_state(latest, errored=errored, ms=ms)

    async def close(self) -> None:
        """Stop the timer and release clients and the store."""
        await self._orchestrator.close()
        if isinstance(self._system_entities, DucklingEntityExtractor):
            await self._system_entities.close()
        self._store.close()
        logger.info("Engine for bot '%s' closed", self._settings.bot_id)
