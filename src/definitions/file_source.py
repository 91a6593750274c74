# src/definitions/file_source.py - v1
"""Definition source reading a bot directory.

Layout::

    <bot_dir>/intents/<intent>.json
    <bot_dir>/entities/<entity>.json

The directory is rescanned on every call so edits are picked up by the
orchestrator's staleness check. Parsed files are cached by (mtime, size),
and the scan runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from nlucore.core.models import EntityDefinition, IntentDefinition
from nlucore.definitions.base_definition_source import BaseDefinitionSource

logger = logging.getLogger(__name__)


class FileDefinitionSource(BaseDefinitionSource):
    """JSON files on the local filesystem."""

    def __init__(self, bot_dir: Path | str) -> None:
        self._root = Path(bot_dir).expanduser()
        self._cache: dict[Path, tuple[tuple[int, int], dict | None]] = {}

    async def get_intents(self) -> list[IntentDefinition]:
        items = await asyncio.to_thread(self._read_dir, "intents")
        intents = [IntentDefinition(**data) for data in items]
        return sorted(intents, key=lambda i: i.name)

    async def get_intent(self, name: str) -> IntentDefinition:
        for intent in await self.get_intents():
            if intent.name == name:
                return intent
        raise KeyError(f"Unknown intent: {name!r}")

    async def get_custom_entities(self) -> list[EntityDefinition]:
        items = await asyncio.to_thread(self._read_dir, "entities")
        return [EntityDefinition(**data) for data in items]

    def _read_dir(self, name: str) -> list[dict]:
        directory = self._root / name
        if not directory.is_dir():
            return []

        items: list[dict] = []
        for path in sorted(directory.glob("*.json")):
            data = self._read_file(path)
            if data is not None:
                items.append(data)
        return items

    def _read_file(self, path: Path) -> dict | None:
        stat = path.stat()
        key = (stat.st_mtime_ns, stat.st_size)
        cached = self._cache.get(path)
        if cached is not None and cached[0] == key:
            return cached[1]

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Skipping malformed definition %s: %s", path, e)
            data = None
        self._cache[path] = (key, data)
        return data
