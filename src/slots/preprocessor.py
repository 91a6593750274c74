# src/slots/preprocessor.py - v1
"""Turn intent definitions into engineered training sequences.

Utterances carry slot markup ``[value](slot_name)``. Each utterance becomes
one Sequence: canonical text (markup removed), tokens tagged
``B-<slot>`` / ``I-<slot>`` / ``o``, tf-idf weights and CRF attributes.
Sequences are rebuilt on every load; only the learners' payloads persist.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from nlucore.core.models import IntentDefinition, Sequence, Token, TrainingIntent
from nlucore.core.text import is_space_token, is_word_token, sanitize
from nlucore.language.base_language_provider import BaseLanguageProvider
from nlucore.slots.features import token_crf_attributes
from nlucore.slots.tfidf import compute_tfidf

logger = logging.getLogger(__name__)

_SLOT_MARKUP = re.compile(r"\[([^\[\]]+?)\]\(([^()\s]+)\)")

BEGINNING = "B"
INSIDE = "I"
OUT = "o"


@dataclass(frozen=True)
class UtteranceChunk:
    text: str
    slot: str | None = None


def parse_utterance(utterance: str) -> list[UtteranceChunk]:
    """Split an utterance into plain and slot-annotated chunks."""
    chunks: list[UtteranceChunk] = []
    cursor = 0
    for match in _SLOT_MARKUP.finditer(utterance):
        if match.start() > cursor:
            chunks.append(UtteranceChunk(text=utterance[cursor : match.start()]))
        chunks.append(UtteranceChunk(text=match.group(1), slot=match.group(2)))
        cursor = match.end()
    if cursor < len(utterance):
        chunks.append(UtteranceChunk(text=utterance[cursor:]))
    return chunks


def canonical_text(utterance: str) -> str:
    """Utterance with slot markup replaced by the slot values."""
    return "".join(chunk.text for chunk in parse_utterance(utterance))


def trainable_intents(
    intents: list[IntentDefinition], language: str, min_utterances: int
) -> list[IntentDefinition]:
    """Intents with at least ``min_utterances`` examples in the language."""
    return [i for i in intents if len(i.utterances_for(language)) >= min_utterances]


def training_languages(
    intents: list[IntentDefinition], languages: list[str], min_utterances: int
) -> list[str]:
    """Configured languages having at least one trainable intent."""
    return [
        lang for lang in languages if trainable_intents(intents, lang, min_utterances)
    ]


async def generate_training_sequence(
    provider: BaseLanguageProvider,
    utterance: str,
    language: str,
    intent: IntentDefinition,
) -> Sequence:
    """Tokenize and tag one utterance. Weights and features are added later."""
    chunks = parse_utterance(utterance)
    slot_entities = {slot.name: slot.entities for slot in intent.slots}
    texts = [sanitize(chunk.text).lower() for chunk in chunks]
    tokenized = await provider.tokenize(texts, language) if texts else []

    tokens: list[Token] = []
    for chunk, chunk_tokens in zip(chunks, tokenized):
        if chunk.slot is not None and chunk.slot not in slot_entities:
            logger.warning(
                "Intent '%s' uses undeclared slot '%s', tagging it anyway",
                intent.name, chunk.slot,
            )
        started = False
        for value in chunk_tokens:
            value = sanitize(value)
            space = is_space_token(value)
            if chunk.slot is None or space:
                tag, slot, entities = OUT, None, ()
            else:
                tag = f"{INSIDE if started else BEGINNING}-{chunk.slot}"
                slot, entities = chunk.slot, tuple(slot_entities.get(chunk.slot, []))
                started = True
            tokens.append(
                Token(
                    value=value,
                    index=len(tokens),
                    is_word=is_word_token(value),
                    is_space=space,
                    entities=entities,
                    slot=slot,
                    tag=tag,
                )
            )

    return Sequence(
        intent=intent.name,
        canonical=canonical_text(utterance),
        language=language,
        contexts=list(intent.contexts),
        tokens=tokens,
    )


async def build_training_sets(
    provider: BaseLanguageProvider,
    intents: list[IntentDefinition],
    language: str,
    min_utterances: int = 3,
    clusters: dict[str, int] | None = None,
) -> list[Sequence]:
    """Engineered sequences for every trainable intent of a language.

    Args:
        provider: Tokenizer service.
        intents: All intent definitions; untrainable ones are skipped.
        language: Language to build for.
        min_utterances: Minimum examples for an intent to be trained.
        clusters: Optional lower-cased token to word-cluster id map.
    """
    raw: dict[str, list[Sequence]] = {}
    definitions: dict[str, IntentDefinition] = {}
    for intent in trainable_intents(intents, language, min_utterances):
        definitions[intent.name] = intent
        raw[intent.name] = [
            await generate_training_sequence(provider, utterance, language, intent)
            for utterance in intent.utterances_for(language)
        ]

    docs = {
        name: [t.to_string(lower_case=True) for seq in sequences for t in seq.tokens if t.is_word]
        for name, sequences in raw.items()
    }
    weights = compute_tfidf(docs)
    clusters = clusters or {}

    training_set: list[Sequence] = []
    for name, sequences in raw.items():
        intent_ctx = TrainingIntent(
            name=name,
            contexts=list(definitions[name].contexts),
            vocab=set(docs[name]),
            allowed_entities=definitions[name].allowed_entities(),
        )
        for sequence in sequences:
            training_set.append(_featurize(sequence, intent_ctx, weights[name], clusters))

    logger.debug(
        "Built %d training sequences for %d intents (%s)",
        len(training_set), len(raw), language,
    )
    return training_set


def _featurize(
    sequence: Sequence,
    intent: TrainingIntent,
    weights: dict[str, float],
    clusters: dict[str, int],
) -> Sequence:
    weighted = [
        token.model_copy(
            update={
                "tfidf": weights.get(token.to_string(lower_case=True), 1.0),
                "cluster": clusters.get(token.to_string(lower_case=True), 1),
            }
        )
        for token in sequence.tokens
    ]
    featured = [
        token.model_copy(
            update={"features": tuple(token_crf_attributes(weighted, i, intent, is_predict=False))}
        )
        for i, token in enumerate(weighted)
    ]
    return sequence.model_copy(update={"tokens": featured})
