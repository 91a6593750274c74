# src/intents/selection.py - v1
"""Tie-break policy choosing one intent out of the classifier's ranking.

With ``mean`` and ``std`` the population mean and standard deviation of every
confidence in the ranking, the top intent wins only when both hold:

    top.confidence >= max(threshold, mean + Z_MARGIN * std)
    top.confidence - runner_up.confidence >= max(Z_MARGIN * std, (1 - threshold) / 2)

A single prediction has no runner-up and ``mean + Z_MARGIN * std`` equals its
own confidence, so it wins iff it reaches the threshold. Anything else
resolves to the reserved ``none`` intent. Equal confidences keep the
classifier's original order.
"""

from __future__ import annotations

import logging

import numpy as np

from nlucore.core.models import DEFAULT_CONTEXT, Intent, none_intent

logger = logging.getLogger(__name__)

Z_MARGIN = 0.5


def rank_intents(intents: list[Intent]) -> list[Intent]:
    """Sort by confidence, descending. Stable, so ties keep input order."""
    return sorted(intents, key=lambda i: i.confidence, reverse=True)


def required_margin(confidences: list[float], threshold: float) -> float:
    std = float(np.std(np.asarray(confidences, dtype=np.float64)))
    return max(Z_MARGIN * std, (1.0 - threshold) / 2.0)


def required_confidence(confidences: list[float], threshold: float) -> float:
    values = np.asarray(confidences, dtype=np.float64)
    return max(threshold, float(values.mean() + Z_MARGIN * values.std()))


def find_most_confident_intent(intents: list[Intent], threshold: float) -> Intent:
    """Apply the tie-break policy to a classifier ranking."""
    if not intents:
        return none_intent()

    ranked = rank_intents(intents)
    top = ranked[0]
    confidences = [i.confidence for i in ranked]

    floor = required_confidence(confidences, threshold)
    if top.confidence < floor:
        logger.debug("Top intent '%s' (%.3f) below %.3f", top.name, top.confidence, floor)
        return none_intent(top.context or DEFAULT_CONTEXT)

    if len(ranked) == 1:
        return top

    margin = top.confidence - ranked[1].confidence
    needed = required_margin(confidences, threshold)
    if margin >= needed:
        return top

    logger.debug(
        "Ambiguous intents '%s' (%.3f) and '%s' (%.3f): margin %.3f < %.3f",
        top.name, top.confidence, ranked[1].name, ranked[1].confidence, margin, needed,
    )
    return none_intent(top.context or DEFAULT_CONTEXT)
