# src/logging/context.py - v1
"""Contextual logging support: attach bot_id, request_id, language and stage.

Context variables are copied into each asyncio task, so concurrent
extractions never see each other's request or stage.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_bot_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "bot_id", default=None
)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_language: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "language", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    bot_id: str | None = None
    request_id: str | None = None
    language: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        bot_id=_bot_id.get(),
        request_id=_request_id.get(),
        language=_language.get(),
        stage=_stage.get(),
    )


def set_bot_context(bot_id: str) -> None:
    """Set bot-level context (engine construction, training cycles)."""
    _bot_id.set(bot_id)


def set_request_context(request_id: str, language: str | None = None) -> None:
    """Set request-level context (called once per extraction)."""
    _request_id.set(request_id)
    _language.set(language)


def set_language_context(language: str | None) -> None:
    _language.set(language)


def set_stage_context(stage: str | None) -> None:
    """Set the pipeline stage currently running."""
    _stage.set(stage)


def clear_request_context() -> None:
    _request_id.set(None)
    _language.set(None)
    _stage.set(None)


def clear_context() -> None:
    """Reset all context variables."""
    _bot_id.set(None)
    clear_request_context()
