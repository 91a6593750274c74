# src/api/facade.py - v1
"""Public API facade.

Usage:
    from nlucore.api.facade import create_engine
    engine = await create_engine(
        bot_dir,
        language_provider=provider,
        classifier_factory=make_classifier,
        tagger_factory=make_tagger,
    )
    result = await engine.extract("book a flight to paris")
"""

from __future__ import annotations

import logging
from pathlib import Path

from nlucore.config.settings import Settings, load_settings
from nlucore.core.models import Entity
from nlucore.definitions.base_definition_source import BaseDefinitionSource
from nlucore.definitions.file_source import FileDefinitionSource
from nlucore.engine.engine import NLUEngine
from nlucore.engine.registry import ClassifierFactory, TaggerFactory
from nlucore.language.base_language_identifier import BaseLanguageIdentifier
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.language.lingua_identifier import LinguaLanguageIdentifier
from nlucore.logging.logger import setup_logging_from_settings
from nlucore.store.base_model_store import BaseModelStore

logger = logging.getLogger(__name__)

MASK_CHAR = "*"


async def create_engine(
    definitions: BaseDefinitionSource | Path | str,
    *,
    language_provider: BaseLanguageProvider,
    classifier_factory: ClassifierFactory,
    tagger_factory: TaggerFactory,
    settings: Settings | None = None,
    language_identifier: BaseLanguageIdentifier | None = None,
    store: BaseModelStore | None = None,
    init: bool = True,
) -> NLUEngine:
    """Build an engine with default collaborators and initialize it.

    Args:
        definitions: Definition source, or a bot directory read with
            FileDefinitionSource.
        language_provider: Tokenizer/vectorizer service.
        classifier_factory: Builds the intent classifier of a language.
        tagger_factory: Builds the slot tagger of a language.
        settings: Engine settings. Loaded from .env if None.
        language_identifier: Defaults to lingua over the configured languages.
        store: Model store. Defaults to the configured backend.
        init: Preload models and start the timer before returning.
    """
    settings = settings or load_settings()
    setup_logging_from_settings(settings)

    if not isinstance(definitions, BaseDefinitionSource):
        definitions = FileDefinitionSource(definitions)

    engine = NLUEngine(
        settings,
        definitions=definitions,
        language_provider=language_provider,
        language_identifier=language_identifier or LinguaLanguageIdentifier(settings.languages),
        classifier_factory=classifier_factory,
        tagger_factory=tagger_factory,
        store=store,
    )
    if init:
        await engine.init()
    logger.info(
        "Engine ready: bot=%s, languages=%s, hash=%s",
        settings.bot_id, settings.languages, engine.model_hash,
    )
    return engine


def mask_sensitive_text(text: str, entities: list[Entity]) -> str:
    """Replace the source text of sensitive entities with ``*``.

    Offsets are kept: each masked span has the length of the original.
    """
    chars = list(text)
    for entity in entities:
        if not entity.sensitive:
            continue
        start = max(0, entity.meta.start)
        end = min(len(chars), entity.meta.end)
        for i in range(start, end):
            chars[i] = MASK_CHAR
    return "".join(chars)
