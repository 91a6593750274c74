# src/slots/features.py - v1
"""CRF feature engineering for slot tagging.

Every function is pure. Boosts differ between training and prediction on
purpose: word identity and entity features weigh 3x more at prediction
time, the intent feature always weighs 100x.
"""

from __future__ import annotations

import re
from collections.abc import Sequence as SequenceType
from dataclasses import dataclass

from nlucore.core.models import Token, TrainingIntent
from nlucore.core.text import compute_quantile, count_alpha, count_num, count_special, sanitize
from nlucore.slots.tfidf import MAX_TFIDF, MIN_TFIDF

FeatureValue = str | int | float | bool | None

TFIDF_WEIGHTS = ("low", "medium", "high")
PREDICT_BOOST = 3
INTENT_BOOST = 100
NULL_VALUE = "null"

# Features paired with the neighbouring token's value
PREVIOUS_PAIRS = ("word", "cluster")
NEXT_PAIRS = ("word",)


@dataclass(frozen=True)
class CRFFeature:
    name: str
    value: FeatureValue
    boost: float = 1


def format_value(value: FeatureValue) -> str:
    if value is None:
        return NULL_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def feat_to_crfsuite_attr(prefix: str, feat: CRFFeature) -> str:
    """``{prefix}{name}={value}:{boost}`` with ``:`` in values escaped."""
    value = format_value(feat.value).replace(":", "\\:")
    boost = int(feat.boost) if float(feat.boost).is_integer() else feat.boost
    return f"{prefix}{feat.name}={value}:{boost}"


def get_feat_pairs(
    feats0: list[CRFFeature], feats1: list[CRFFeature], feat_names: SequenceType[str]
) -> list[CRFFeature]:
    """Combine two feature sets name by name.

    One feature per name present on either side; value ``left|right`` with
    ``null`` for a missing side; boost is the larger of the two.
    """
    pairs: list[CRFFeature] = []
    for name in feat_names:
        f0 = next((f for f in feats0 if f.name == name), None)
        f1 = next((f for f in feats1 if f.name == name), None)
        if f0 is None and f1 is None:
            continue
        pairs.append(
            CRFFeature(
                name=name,
                value=f"{_value_of(f0)}|{_value_of(f1)}",
                boost=max(_boost_of(f0), _boost_of(f1)),
            )
        )
    return pairs


def _value_of(feat: CRFFeature | None) -> str:
    return NULL_VALUE if feat is None else format_value(feat.value)


def _boost_of(feat: CRFFeature | None) -> float:
    return 1 if feat is None else feat.boost


def get_word_weight(token: Token) -> CRFFeature:
    tierce = compute_quantile(3, token.tfidf, MAX_TFIDF, MIN_TFIDF)
    return CRFFeature(name="weight", value=TFIDF_WEIGHTS[tierce - 1])


def get_cluster_feat(token: Token) -> CRFFeature:
    return CRFFeature(name="cluster", value=token.cluster)


def get_word_feat(token: Token, is_predict: bool) -> CRFFeature | None:
    """Word identity, only for plain words not covered by an entity."""
    if token.entities or not token.is_word:
        return None
    return CRFFeature(
        name="word",
        value=token.to_string(lower_case=True),
        boost=PREDICT_BOOST if is_predict else 1,
    )


def get_in_vocab_feat(token: Token, intent: TrainingIntent) -> CRFFeature:
    return CRFFeature(name="inVocab", value=token.to_string(lower_case=True) in intent.vocab)


def get_entities_feats(
    token: Token, allowed_entities: SequenceType[str], is_predict: bool
) -> list[CRFFeature]:
    """One feature per allowed entity type on the token, or a ``none`` sentinel."""
    boost = PREDICT_BOOST if is_predict else 1
    entities: list[str] = []
    for entity in token.entities:
        if entity in allowed_entities and entity not in entities:
            entities.append(entity)
    return [CRFFeature(name="entity", value=e, boost=boost) for e in entities or ["none"]]


def get_space_feat(token: Token | None) -> CRFFeature:
    return CRFFeature(name="space", value=token is not None and token.is_space)


def get_num(token: Token) -> CRFFeature:
    return CRFFeature(name="num", value=count_num(token.value))


def get_alpha(token: Token) -> CRFFeature:
    return CRFFeature(name="alpha", value=count_alpha(token.value))


def get_special_chars(token: Token) -> CRFFeature:
    return CRFFeature(name="special", value=count_special(token.value))


def get_intent_feature(intent: TrainingIntent) -> CRFFeature:
    return CRFFeature(
        name="intent",
        value=sanitize(re.sub(r"\s", "", intent.name)),
        boost=INTENT_BOOST,
    )


def get_token_quartile(tokens: SequenceType[Token], token: Token) -> CRFFeature:
    return CRFFeature(name="quartile", value=compute_quantile(4, token.index + 1, len(tokens)))


def token_features(
    tokens: SequenceType[Token], index: int, intent: TrainingIntent, is_predict: bool
) -> list[CRFFeature]:
    """Every single-token feature of ``tokens[index]``."""
    token = tokens[index]
    feats = [
        get_word_weight(token),
        get_cluster_feat(token),
        get_in_vocab_feat(token, intent),
        *get_entities_feats(token, intent.allowed_entities, is_predict),
        get_num(token),
        get_alpha(token),
        get_special_chars(token),
        get_intent_feature(intent),
        get_token_quartile(tokens, token),
    ]
    word = get_word_feat(token, is_predict)
    if word is not None:
        feats.insert(0, word)
    return feats


def token_crf_attributes(
    tokens: SequenceType[Token], index: int, intent: TrainingIntent, is_predict: bool
) -> list[str]:
    """CRFsuite attributes of one token with a one-token window on each side."""
    current = token_features(tokens, index, intent, is_predict)
    has_prev = index > 0
    has_next = index < len(tokens) - 1

    previous = (
        token_features(tokens, index - 1, intent, is_predict)
        if has_prev
        else [CRFFeature(name="token", value="__BOS__")]
    )
    following = (
        token_features(tokens, index + 1, intent, is_predict)
        if has_next
        else [CRFFeature(name="token", value="__EOS__")]
    )

    attrs = [feat_to_crfsuite_attr("", f) for f in current]
    attrs += [feat_to_crfsuite_attr("w[-1]", f) for f in previous]
    attrs += [feat_to_crfsuite_attr("w[1]", f) for f in following]
    attrs.append(feat_to_crfsuite_attr("w[-1]", get_space_feat(tokens[index - 1] if has_prev else None)))
    attrs.append(feat_to_crfsuite_attr("w[1]", get_space_feat(tokens[index + 1] if has_next else None)))
    attrs += [
        feat_to_crfsuite_attr("w[-1]|w[0]", f)
        for f in get_feat_pairs(previous, current, PREVIOUS_PAIRS)
    ]
    attrs += [
        feat_to_crfsuite_attr("w[0]|w[1]", f)
        for f in get_feat_pairs(current, following, NEXT_PAIRS)
    ]
    return attrs
