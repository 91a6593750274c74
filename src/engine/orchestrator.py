# src/engine/orchestrator.py - v1
"""Training/caching orchestrator.

Guarantees that models for the current intent definitions are loaded,
training at most once per model hash:

  1. Hash the intent definitions.
  2. If every training language has artifacts for the hash in the store,
     load them. Any load failure falls through to training.
  3. Otherwise train each language (failures isolated per language),
     persist the artifacts, then load them back through the same path.
  4. Record the hash and mark the engine primed.

Concurrent sync requests are coalesced with two flags: while a sync is in
flight, any number of requests collapse into exactly one follow-up cycle.
An optional background task re-syncs when the definitions drift.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from nlucore.config.settings import Settings
from nlucore.core.errors import ModelArtifactMissing, NLUError, TrainingFailed
from nlucore.core.models import DEFAULT_CONTEXT, IntentDefinition, ModelType, make_artifact
from nlucore.definitions.base_definition_source import BaseDefinitionSource
from nlucore.engine.registry import ModelRegistry
from nlucore.intents.exact_matcher import ExactMatcher
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.logging.context import set_language_context
from nlucore.slots.preprocessor import (
    build_training_sets,
    trainable_intents,
    training_languages,
)
from nlucore.store.base_model_store import (
    BaseModelStore,
    find_artifact,
    select_intent_artifacts,
)
from nlucore.store.model_hash import compute_model_hash

logger = logging.getLogger(__name__)


class ModelOrchestrator:
    """Decide between loading and training, and keep the registry loaded.

    Args:
        settings: Engine settings (languages, min utterances, auto-train).
        registry: Per-language learners to train and load.
        definitions: Source of intent definitions.
        language_provider: Tokenizer used to build training sequences.
        store: Model artifact store.
    """

    def __init__(
        self,
        settings: Settings,
        registry: ModelRegistry,
        definitions: BaseDefinitionSource,
        language_provider: BaseLanguageProvider,
        store: BaseModelStore,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._definitions = definitions
        self._provider = language_provider
        self._store = store

        self._current_hash: str | None = None
        self._primed = False
        self._syncing = False
        self._sync_pending = False
        self._timer: asyncio.Task[None] | None = None

    @property
    def current_hash(self) -> str | None:
        return self._current_hash

    @property
    def primed(self) -> bool:
        return self._primed

    @property
    def syncing(self) -> bool:
        return self._syncing

    # --- Sync ---

    async def ensure_models_ready(self, force_retrain: bool = False) -> str | None:
        """Load or train models for the current definitions.

        Returns immediately when a sync is already in flight; the request is
        then served by a single follow-up cycle of the running sync.

        Returns:
            The hash of the loaded models (the previous one if syncing).
        """
        if self._syncing:
            self._sync_pending = True
            logger.debug("Sync in flight, follow-up requested")
            return self._current_hash

        self._syncing = True
        try:
            while True:
                self._sync_pending = False
                try:
                    await self._sync_once(force_retrain)
                except Exception:
                    logger.exception(
                        "Model sync failed, keeping models of hash %s", self._current_hash
                    )
                force_retrain = False
                if not self._sync_pending:
                    break
                logger.info("Running coalesced follow-up sync")
        finally:
            self._syncing = False
            set_language_context(None)

        return self._current_hash

    async def is_sync_needed(self) -> bool:
        """True when the definitions no longer match the loaded models."""
        if self._syncing:
            return False
        intents = await self._definitions.get_intents()
        if not intents:
            return False
        return compute_model_hash(intents) != self._current_hash

    async def _sync_once(self, force_retrain: bool) -> None:
        intents = await self._definitions.get_intents()
        model_hash = compute_model_hash(intents)
        languages = training_languages(
            intents, self._registry.languages, self._settings.min_utterances
        )
        if not languages:
            logger.warning(
                "No intent has %d utterances in any language, nothing to train",
                self._settings.min_utterances,
            )

        loaded = False
        if not force_retrain and languages and await self._models_exist(model_hash, languages):
            try:
                for lang in languages:
                    await self._load_language(intents, model_hash, lang)
                loaded = True
                logger.info("Loaded models of hash %s for %s", model_hash, languages)
            except ModelArtifactMissing as e:
                logger.warning("%s, retraining", e)
            except Exception as e:
                logger.warning("Could not load models of hash %s (%s), retraining", model_hash, e)

        if not loaded and languages:
            trained = await self._train(intents, model_hash, languages)
            if not trained:
                raise NLUError(f"Training failed for every language (hash {model_hash})")
            for lang in trained:
                await self._load_language(intents, model_hash, lang)

        self._current_hash = model_hash
        self._primed = True

    async def _models_exist(self, model_hash: str, languages: list[str]) -> bool:
        for lang in languages:
            if not await self._store.model_exists(model_hash, lang):
                return False
        return True

    # --- Training ---

    async def _train(
        self, intents: list[IntentDefinition], model_hash: str, languages: list[str]
    ) -> list[str]:
        """Train each language; return the ones that succeeded."""
        trained: list[str] = []
        for lang in languages:
            set_language_context(lang)
            try:
                await self._train_language(intents, model_hash, lang)
            except Exception as e:
                failure = TrainingFailed(lang, e)
                logger.error("%s", failure, exc_info=e)
                continue
            trained.append(lang)
        return trained

    async def _train_language(
        self, intents: list[IntentDefinition], model_hash: str, language: str
    ) -> None:
        models = self._registry.get(language)
        min_utterances = self._settings.min_utterances
        trainable = trainable_intents(intents, language, min_utterances)
        logger.info("Training %d intents for '%s' (hash %s)", len(trainable), language, model_hash)

        artifacts = list(await models.classifier.train(trainable, model_hash))

        sequences = await build_training_sets(self._provider, intents, language, min_utterances)
        tagger_models = await models.tagger.train(sequences)
        if tagger_models.language is None or tagger_models.crf is None:
            raise ValueError("slot tagger returned no language or CRF model")

        artifacts.append(
            make_artifact(DEFAULT_CONTEXT, model_hash, tagger_models.language, ModelType.SLOT_LANGUAGE)
        )
        artifacts.append(
            make_artifact(DEFAULT_CONTEXT, model_hash, tagger_models.crf, ModelType.SLOT_CRF)
        )
        await self._store.persist_models(artifacts, language)
        logger.info("Persisted %d artifacts for '%s'", len(artifacts), language)

    # --- Loading ---

    async def _load_language(
        self, intents: list[IntentDefinition], model_hash: str, language: str
    ) -> None:
        """Load one language's artifacts into its learners.

        Raises:
            ModelArtifactMissing: An intent, slot language or CRF artifact
                is absent for the hash.
        """
        set_language_context(language)
        artifacts = await self._store.get_models_from_hash(model_hash, language)

        intent_artifacts = select_intent_artifacts(artifacts)
        if not intent_artifacts:
            raise ModelArtifactMissing("intent", model_hash, language)
        language_model = find_artifact(artifacts, ModelType.SLOT_LANGUAGE)
        if language_model is None:
            raise ModelArtifactMissing(ModelType.SLOT_LANGUAGE, model_hash, language)
        crf_model = find_artifact(artifacts, ModelType.SLOT_CRF)
        if crf_model is None:
            raise ModelArtifactMissing(ModelType.SLOT_CRF, model_hash, language)

        sequences = await build_training_sets(
            self._provider, intents, language, self._settings.min_utterances
        )
        models = self._registry.get(language)
        await models.classifier.load(intent_artifacts)
        await models.tagger.load(sequences, language_model.payload, crf_model.payload)
        self._registry.set_exact_matcher(language, ExactMatcher(sequences))
        logger.debug(
            "Loaded %d intent artifacts and %d sequences for '%s'",
            len(intent_artifacts), len(sequences), language,
        )

    # --- Background staleness check ---

    def start_auto_train(self) -> None:
        """(Re)start the staleness timer if the interval allows it."""
        self.stop_auto_train()
        if not self._settings.auto_train_enabled:
            logger.debug("Auto-train disabled")
            return
        self._timer = asyncio.create_task(self._auto_train_loop(), name="nlucore-auto-train")
        logger.info("Auto-train every %.1fs", self._settings.auto_train_interval)

    def stop_auto_train(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _auto_train_loop(self) -> None:
        interval = self._settings.auto_train_interval
        while True:
            await asyncio.sleep(interval)
            if not self._primed:
                continue
            try:
                if await self.is_sync_needed():
                    logger.info("Intent definitions changed, syncing models")
                    await self.ensure_models_ready()
            except Exception:
                logger.exception("Staleness check failed")

    async def close(self) -> None:
        timer = self._timer
        self.stop_auto_train()
        if timer is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await timer
