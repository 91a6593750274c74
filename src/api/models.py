# src/api/models.py - v1
"""API-level models: ExtractionResult returned to the host."""

from __future__ import annotations

from pydantic import BaseModel, Field

from nlucore.core.models import Entity, Intent, Slot
from nlucore.pipeline.state import ExtractionState


class ExtractionResult(BaseModel):
    """Return value of NLUEngine.extract(). Always well-formed.

    ``errored`` is True when the pipeline did not complete; the other fields
    then hold whatever the last completed stage produced. ``ms`` is always
    set, successful or not.
    """

    intent: Intent | None = None
    intents: list[Intent] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    slots: list[Slot] = Field(default_factory=list)
    language: str | None = None
    detected_language: str | None = None
    included_contexts: list[str] = Field(default_factory=list)
    errored: bool = False
    ms: int = Field(default=0, ge=0)

    @classmethod
    def from_state(cls, state: ExtractionState, *, errored: bool, ms: int) -> ExtractionResult:
        return cls(
            intent=state.intent,
            intents=state.intents,
            entities=state.entities,
            slots=state.slots,
            language=state.language,
            detected_language=state.detected_language,
            included_contexts=state.included_contexts,
            errored=errored,
            ms=ms,
        )
