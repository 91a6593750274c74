# src/intents/exact_matcher.py - v1
"""Fast path mapping known training utterances directly to their intent."""

from __future__ import annotations

from nlucore.core.models import DEFAULT_CONTEXT, Intent, Sequence
from nlucore.core.text import normalize_for_match


class ExactMatcher:
    """Lookup from normalized canonical utterance to (intent, contexts).

    Built from the training sequences of one language. When two intents
    share an utterance, the first one in training order keeps it.
    """

    def __init__(self, training_set: list[Sequence]) -> None:
        self._index: dict[str, list[tuple[str, list[str]]]] = {}
        for sequence in training_set:
            key = normalize_for_match(sequence.canonical)
            if not key:
                continue
            entries = self._index.setdefault(key, [])
            if all(name != sequence.intent for name, _ in entries):
                entries.append((sequence.intent, list(sequence.contexts) or [DEFAULT_CONTEXT]))

    def __len__(self) -> int:
        return len(self._index)

    def exact_match(self, text: str, included_contexts: list[str]) -> Intent | None:
        """Intent at confidence 1.0 if ``text`` is a known utterance.

        Only intents living in one of ``included_contexts`` qualify; an empty
        list means no context constraint.
        """
        entries = self._index.get(normalize_for_match(text))
        if not entries:
            return None

        for name, contexts in entries:
            if not included_contexts:
                return Intent(name=name, context=contexts[0], confidence=1.0)
            for context in included_contexts:
                if context in contexts:
                    return Intent(name=name, context=context, confidence=1.0)
        return None
