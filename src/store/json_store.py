# src/store/json_store.py - v1
"""JSON file-based model store (default MODEL_STORE_BACKEND=json).

Layout: ``<root>/<language>/<hash>/<type>.<context>.<created_on>.json``,
one file per artifact with its payload base64-encoded.
"""

from __future__ import annotations

import base64
import json
import logging
import re
import shutil
from pathlib import Path

from nlucore.core.models import ModelArtifact, ModelMeta
from nlucore.store.base_model_store import BaseModelStore

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_\-]")


class JsonModelStore(BaseModelStore):
    """File-based model store using one JSON file per artifact."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def model_exists(self, model_hash: str, language: str) -> bool:
        hash_dir = self._hash_dir(model_hash, language)
        return hash_dir.is_dir() and any(hash_dir.glob("*.json"))

    async def get_models_from_hash(self, model_hash: str, language: str) -> list[ModelArtifact]:
        artifacts: list[ModelArtifact] = []
        hash_dir = self._hash_dir(model_hash, language)
        if not hash_dir.is_dir():
            return artifacts

        for path in sorted(hash_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                artifacts.append(
                    ModelArtifact(
                        meta=ModelMeta(**data["meta"]),
                        payload=base64.b64decode(data["payload"], validate=True),
                    )
                )
            except Exception as e:
                logger.warning("Skipping unreadable model artifact %s: %s", path, e)
                continue

        return artifacts

    async def persist_models(self, artifacts: list[ModelArtifact], language: str) -> None:
        for artifact in artifacts:
            path = self._artifact_path(artifact, language)
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists():
                logger.debug("Artifact %s already persisted, keeping it", path.name)
                continue
            data = {
                "meta": artifact.meta.model_dump(mode="json"),
                "payload": base64.b64encode(artifact.payload).decode("ascii"),
            }
            path.write_text(json.dumps(data), encoding="utf-8")

    async def list_hashes(self, language: str) -> list[str]:
        lang_dir = self._root / _safe(language)
        if not lang_dir.is_dir():
            return []
        return sorted(p.name for p in lang_dir.iterdir() if p.is_dir())

    async def prune(self, keep_hash: str, language: str) -> int:
        removed = 0
        for model_hash in await self.list_hashes(language):
            if model_hash == _safe(keep_hash):
                continue
            hash_dir = self._hash_dir(model_hash, language)
            removed += sum(1 for _ in hash_dir.glob("*.json"))
            shutil.rmtree(hash_dir)
        return removed

    def _hash_dir(self, model_hash: str, language: str) -> Path:
        return self._root / _safe(language) / _safe(model_hash)

    def _artifact_path(self, artifact: ModelArtifact, language: str) -> Path:
        meta = artifact.meta
        stamp = int(meta.created_on.timestamp() * 1000)
        filename = f"{_safe(meta.type)}.{_safe(meta.context)}.{stamp}.json"
        return self._hash_dir(meta.hash, language) / filename


def _safe(value: str) -> str:
    return _UNSAFE.sub("_", value)
