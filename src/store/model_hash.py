# src/store/model_hash.py - v1
"""Content hash over intent definitions, identifying one model generation.

Two definition sets with the same semantic content hash identically:
intent order, slot order, context order and dict key order are normalized.
Any change to an utterance, a slot or a context changes the hash.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable

from nlucore.core.models import IntentDefinition


def compute_model_hash(intents: Iterable[IntentDefinition]) -> str:
    """SHA-256 over the canonical JSON form of the intent definitions."""
    canonical = [_canonical_intent(intent) for intent in intents]
    canonical.sort(key=lambda item: json.dumps(item, sort_keys=True, ensure_ascii=False))
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _canonical_intent(intent: IntentDefinition) -> dict[str, Any]:
    data = intent.model_dump(mode="json")
    data["contexts"] = sorted(set(data["contexts"]))
    data["slots"] = sorted(
        ({**slot, "entities": sorted(slot["entities"])} for slot in data["slots"]),
        key=lambda slot: slot["name"],
    )
    # Languages without utterances carry no training content
    data["utterances"] = {
        lang: utterances for lang, utterances in data["utterances"].items() if utterances
    }
    return data
