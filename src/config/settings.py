# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

One Settings instance configures one bot engine. Environment variables use
the ``NLU_`` prefix (``NLU_LANGUAGES=en,fr``, ``NLU_AUTO_TRAIN_INTERVAL=5m``).
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from nlucore.core.errors import ConfigurationError

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
MIN_AUTO_TRAIN_INTERVAL_S = 5.0

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}


def parse_duration(value: Any) -> float:
    """Parse ``"250ms"``, ``"30s"``, ``"5m"``, ``"1h"`` or a number of seconds."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}. Use e.g. '30s' or '5m'.")
    amount = float(match.group(1))
    unit = (match.group(2) or "s").lower()
    return amount * _DURATION_UNITS[unit]


class Settings(BaseSettings):
    """Per-bot engine settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_prefix="NLU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Bot ===
    bot_id: str = "default"
    languages: Annotated[list[str], NoDecode] = ["en"]
    default_language: str = "en"

    # === Training ===
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    min_utterances: int = 3
    preload_models: bool = True
    auto_train_interval: float = 0.0

    # === Extraction retry policy ===
    retry_interval_s: float = 0.1
    retry_max_interval_s: float = 0.5
    retry_timeout_s: float = 5.0
    retry_max_tries: int = 3

    # === Model store ===
    model_store_backend: Literal["json", "sqlite"] = "json"
    model_store_root: Path = Path("~/.nlucore/models")

    # === System entities ===
    duckling_enabled: bool = False
    duckling_url: str = "http://localhost:8000"
    duckling_timeout_s: float = 2.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("languages", mode="before")
    @classmethod
    def split_languages(cls, v: Any) -> Any:  # noqa: N805
        """Accept a comma-separated string."""
        if isinstance(v, str):
            return [lang.strip() for lang in v.split(",") if lang.strip()]
        return v

    @field_validator("languages")
    @classmethod
    def normalize_languages(cls, v: list[str]) -> list[str]:  # noqa: N805
        langs: list[str] = []
        for lang in v:
            code = lang.strip().lower()
            if code and code not in langs:
                langs.append(code)
        return langs

    @field_validator("default_language")
    @classmethod
    def normalize_default_language(cls, v: str) -> str:  # noqa: N805
        return v.strip().lower()

    @field_validator("confidence_threshold", mode="before")
    @classmethod
    def clamp_confidence_threshold(cls, v: Any) -> float:  # noqa: N805
        """NaN, garbage or values outside [0, 1] fall back to the default."""
        try:
            value = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE_THRESHOLD
        if math.isnan(value) or value < 0 or value > 1:
            return DEFAULT_CONFIDENCE_THRESHOLD
        return value

    @field_validator("auto_train_interval", mode="before")
    @classmethod
    def parse_auto_train_interval(cls, v: Any) -> float:  # noqa: N805
        return parse_duration(v)

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.languages:
            errors.append("LANGUAGES must contain at least one language")
        elif self.default_language not in self.languages:
            errors.append(
                f"DEFAULT_LANGUAGE {self.default_language!r} is not in LANGUAGES"
            )

        if self.min_utterances < 1:
            errors.append("MIN_UTTERANCES must be >= 1")

        if self.retry_max_tries < 1:
            errors.append("RETRY_MAX_TRIES must be >= 1")

        if self.retry_max_interval_s < self.retry_interval_s:
            errors.append("RETRY_MAX_INTERVAL_S must be >= RETRY_INTERVAL_S")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def auto_train_enabled(self) -> bool:
        """Timer runs only above the minimum interval."""
        return self.auto_train_interval >= MIN_AUTO_TRAIN_INTERVAL_S


def load_settings(env_file: str | Path | None = ".env", **overrides: Any) -> Settings:
    """Load settings from an env file, with keyword overrides taking priority."""
    return Settings(_env_file=env_file, **overrides)
