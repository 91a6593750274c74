# src/slots/tfidf.py - v1
"""Per-intent tf-idf weights of training tokens.

Each intent is one document. Weights are clipped to [MIN_TFIDF, MAX_TFIDF],
the same range the feature engineer uses to bin them.
"""

from __future__ import annotations

import math
from collections import Counter

MIN_TFIDF = 0.5
MAX_TFIDF = 2.0
AVG_DOC = "__avg__"


def compute_tfidf(docs: dict[str, list[str]]) -> dict[str, dict[str, float]]:
    """Weight every token of every document.

    Args:
        docs: Document name (intent) to its tokens, duplicates included.

    Returns:
        Document name to token weights, plus an ``__avg__`` document holding
        each token's mean weight over the documents containing it.
    """
    n_docs = len(docs)
    doc_freq: Counter[str] = Counter()
    for tokens in docs.values():
        doc_freq.update(set(tokens))

    result: dict[str, dict[str, float]] = {}
    sums: dict[str, list[float]] = {}
    for name, tokens in docs.items():
        counts = Counter(tokens)
        max_count = max(counts.values(), default=1)
        weights: dict[str, float] = {}
        for token, count in counts.items():
            tf = 0.5 + 0.5 * count / max_count
            idf = math.log(1 + n_docs / doc_freq[token])
            weights[token] = _clip(tf * idf)
            sums.setdefault(token, []).append(weights[token])
        result[name] = weights

    result[AVG_DOC] = {token: sum(ws) / len(ws) for token, ws in sums.items()}
    return result


def _clip(value: float) -> float:
    return min(MAX_TFIDF, max(MIN_TFIDF, value))
