# src/pipeline/state.py - v1
"""Extraction state flowing through the pipeline stages.

Each stage returns a new state (``evolve``) instead of mutating the one it
received, so a failed attempt never leaks half-written fields into a retry
and concurrent requests never share a record.
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, Field

from nlucore.core.models import Entity, Intent, Slot


class ExtractionState(BaseModel):
    """Working record of one extraction request."""

    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    # === INPUT ===
    raw_text: str
    included_contexts: list[str] = Field(default_factory=list)

    # === LANGUAGE ===
    detected_language: str | None = None
    language: str | None = None

    # === TEXT ===
    lower_text: str = ""
    sanitized_text: str = ""
    tokens: list[str] = Field(default_factory=list)

    # === UNDERSTANDING ===
    entities: list[Entity] = Field(default_factory=list)
    intents: list[Intent] = Field(default_factory=list)
    intent: Intent | None = None
    slots: list[Slot] = Field(default_factory=list)

    def evolve(self, **changes: Any) -> ExtractionState:
        """Copy of this state with some fields replaced."""
        return self.model_copy(update=changes)
