# src/pipeline/retry.py - v1
"""Bounded retry policy for the extraction pipeline.

Capped exponential backoff, a maximum number of tries and an overall
timeout. Only transient errors (``retry_on``) are retried; anything else
propagates on the first occurrence.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from nlucore.core.errors import ExtractionStageFailed, RetryExhausted

if TYPE_CHECKING:
    from nlucore.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits for one extraction."""

    interval_s: float = 0.1
    max_interval_s: float = 0.5
    timeout_s: float = 5.0
    max_tries: int = 3
    backoff_factor: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            interval_s=settings.retry_interval_s,
            max_interval_s=settings.retry_max_interval_s,
            timeout_s=settings.retry_timeout_s,
            max_tries=settings.retry_max_tries,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (0-based), capped."""
        return min(self.max_interval_s, self.interval_s * (self.backoff_factor ** attempt))


DEFAULT_RETRY_POLICY = RetryPolicy()


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    retry_on: tuple[type[BaseException], ...] = (ExtractionStageFailed,),
    **kwargs: Any,
) -> Any:
    """Execute an async function under the retry policy.

    Raises:
        RetryExhausted: All tries failed with a retryable error, or the
            overall timeout fired.
    """
    attempts = 0
    last_error: BaseException | None = None

    async def _attempts() -> Any:
        nonlocal attempts, last_error
        while True:
            try:
                return await fn(*args, **kwargs)
            except retry_on as e:
                attempts += 1
                last_error = e
                if attempts >= policy.max_tries:
                    raise RetryExhausted(attempts, e) from e

                delay = policy.delay_for(attempts - 1)
                logger.warning(
                    "Extraction attempt %d/%d failed (%s), retrying in %.2fs",
                    attempts, policy.max_tries, e, delay,
                )
                await asyncio.sleep(delay)

    try:
        return await asyncio.wait_for(_attempts(), timeout=policy.timeout_s)
    except asyncio.TimeoutError as e:
        logger.warning("Extraction timed out after %.1fs", policy.timeout_s)
        raise RetryExhausted(attempts, last_error or e) from e
