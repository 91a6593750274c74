# src/core/errors.py - v1
"""Error hierarchy shared by training, loading and extraction.

Training and loading errors are caught by the orchestrator and logged;
extraction errors are caught per request by the engine. None of them is
allowed to reach the host process.
"""

from __future__ import annotations


class NLUError(Exception):
    """Base class for all nlucore errors."""


class ConfigurationError(NLUError):
    """Raised when settings are internally inconsistent."""


class ModelArtifactMissing(NLUError):
    """A required model artifact is absent from the store for a given hash."""

    def __init__(self, artifact_type: str, model_hash: str, language: str) -> None:
        self.artifact_type = artifact_type
        self.model_hash = model_hash
        self.language = language
        super().__init__(
            f"Could not find '{artifact_type}' model for language '{language}'. "
            f"Hash = {model_hash!r}"
        )


class TrainingFailed(NLUError):
    """Training a language's models failed. Other languages still train."""

    def __init__(self, language: str, cause: Exception) -> None:
        self.language = language
        self.cause = cause
        super().__init__(f"Training failed for language '{language}': {cause}")


class ExtractionStageFailed(NLUError):
    """A pipeline stage failed in a way worth retrying (collaborator error)."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")


class RetryExhausted(ExtractionStageFailed):
    """All attempts of the bounded retry policy failed or the timeout fired."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.stage = getattr(last_error, "stage", "pipeline")
        self.cause = last_error
        NLUError.__init__(
            self, f"Extraction failed after {attempts} attempt(s): {last_error}"
        )


class UnsupportedLanguage(NLUError):
    """A language outside the configured set was requested.

    Extraction never raises this: unsupported detections are remapped to the
    default language. Definition loading uses it to reject bad input.
    """

    def __init__(self, language: str | None, supported: list[str]) -> None:
        self.language = language
        self.supported = supported
        super().__init__(
            f"Language {language!r} is not supported (supported: {', '.join(supported)})"
        )
