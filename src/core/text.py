# src/core/text.py - v1
"""Text helpers shared by tokenization, exact matching and feature engineering."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nlucore.core.models import Entity

# Tokenizers mark word starts with this char (sentencepiece convention).
SPACE_MARKER = "▁"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f\u200b-\u200f\u2028\u2029\ufeff]")
_ALPHA = re.compile(r"[^\W\d_]", re.UNICODE)
_NUM = re.compile(r"\d", re.UNICODE)
_PUNCTUATION = re.compile(r"[^\w\s]|_", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")


def sanitize(text: str) -> str:
    """Replace control and zero-width characters with spaces.

    Length-preserving: character offsets computed on the sanitized text are
    valid on the original one.
    """
    return _CONTROL_CHARS.sub(" ", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize_for_match(text: str) -> str:
    """Lower-case, drop punctuation and collapse whitespace."""
    return collapse_whitespace(_PUNCTUATION.sub(" ", sanitize(text).lower()))


def count_alpha(value: str) -> int:
    return len(_ALPHA.findall(value))


def count_num(value: str) -> int:
    return len(_NUM.findall(value))


def count_special(value: str) -> int:
    return len(value) - count_alpha(value) - count_num(value)


def is_space_token(value: str) -> bool:
    return value.replace(SPACE_MARKER, " ").strip() == ""


def is_word_token(value: str) -> bool:
    """A token made only of letters and digits (leading space marker ignored)."""
    stripped = value.lstrip(SPACE_MARKER)
    return bool(stripped) and stripped.isalnum()


def compute_quantile(
    quantile: int, target: float, upper_bound: float, lower_bound: float = 0.0
) -> int:
    """Map ``target`` into a 1-based bucket among ``quantile`` buckets.

    ``lower_bound`` maps to bucket 1 and ``upper_bound`` to bucket ``quantile``;
    values outside the range are clamped.
    """
    if upper_bound <= lower_bound:
        return 1
    ratio = (target - lower_bound) / (upper_bound - lower_bound)
    return min(quantile, max(math.ceil(quantile * ratio), 1))


def get_text_without_entities(entities: list[Entity], text: str) -> str:
    """Remove every entity span from ``text`` and collapse the remainder.

    Overlapping spans are merged before removal.
    """
    spans = sorted(
        (max(0, e.meta.start), min(len(text), e.meta.end))
        for e in entities
        if e.meta.end > e.meta.start
    )
    merged: list[tuple[int, int]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))

    for start, end in reversed(merged):
        text = text[:start] + " " + text[end:]
    return collapse_whitespace(text)
