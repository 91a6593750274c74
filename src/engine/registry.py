# src/engine/registry.py - v1
"""Per-language learners, built once from the validated language set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from nlucore.core.errors import UnsupportedLanguage
from nlucore.intents.exact_matcher import ExactMatcher
from nlucore.ml.base_intent_classifier import BaseIntentClassifier
from nlucore.ml.base_slot_tagger import BaseSlotTagger

ClassifierFactory = Callable[[str], BaseIntentClassifier]
TaggerFactory = Callable[[str], BaseSlotTagger]


@dataclass
class LanguageModels:
    """Loaded models of one language."""

    classifier: BaseIntentClassifier
    tagger: BaseSlotTagger
    exact_matcher: ExactMatcher | None = None

    @property
    def loaded(self) -> bool:
        return self.exact_matcher is not None


class ModelRegistry:
    """Language code to LanguageModels.

    The orchestrator writes into it after a successful load; pipeline runs
    only read from it.
    """

    def __init__(
        self,
        languages: list[str],
        classifier_factory: ClassifierFactory,
        tagger_factory: TaggerFactory,
    ) -> None:
        self._models: dict[str, LanguageModels] = {
            lang: LanguageModels(
                classifier=classifier_factory(lang),
                tagger=tagger_factory(lang),
            )
            for lang in languages
        }

    @property
    def languages(self) -> list[str]:
        return list(self._models)

    def get(self, language: str) -> LanguageModels:
        try:
            return self._models[language]
        except KeyError:
            raise UnsupportedLanguage(language, self.languages) from None

    def set_exact_matcher(self, language: str, matcher: ExactMatcher) -> None:
        self.get(language).exact_matcher = matcher

    def __contains__(self, language: object) -> bool:
        return language in self._models
