# src/entities/duckling_extractor.py - v1
"""System entity extraction through a Duckling server.

Disabled by default: an engine without Duckling gets no system entities.
HTTP failures propagate so the extraction retry policy can handle them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nlucore.core.models import Entity, EntityData, EntityMeta
from nlucore.entities.base_entity_extractor import BaseSystemEntityExtractor

logger = logging.getLogger(__name__)


class DucklingEntityExtractor(BaseSystemEntityExtractor):
    """BaseSystemEntityExtractor calling Duckling's ``/parse`` endpoint.

    Args:
        enabled: When False, extract() always returns an empty list.
        url: Base URL of the Duckling server.
        timeout: Request timeout in seconds.
        tz: Reference timezone for date/time resolution.
        client: Optional preconfigured httpx client (tests, shared pools).
    """

    def __init__(
        self,
        enabled: bool = False,
        url: str = "http://localhost:8000",
        timeout: float = 2.0,
        tz: str = "UTC",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._enabled = enabled
        self._tz = tz
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=url.rstrip("/"), timeout=timeout)

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def extract(self, text: str, language: str) -> list[Entity]:
        if not self._enabled or not text.strip():
            return []

        response = await self._client.post(
            "/parse", data={"text": text, "lang": language, "tz": self._tz}
        )
        response.raise_for_status()

        entities = [
            self._to_entity(item)
            for item in response.json()
            if not item.get("latent", False)
        ]
        logger.debug("Duckling returned %d entities", len(entities))
        return entities

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _to_entity(item: dict[str, Any]) -> Entity:
        value = item.get("value") or {}
        extras = {k: v for k, v in value.items() if k not in ("value", "unit")}
        return Entity(
            type="system",
            name=item.get("dim", "unknown"),
            meta=EntityMeta(
                confidence=1.0,
                provider="duckling",
                source=item.get("body", ""),
                start=item.get("start", 0),
                end=item.get("end", 0),
                raw=item,
            ),
            data=EntityData(
                value=value.get("value"),
                unit=value.get("unit"),
                extras=extras,
            ),
        )
