# src/store/sqlite_store.py - v1
"""SQLite-based model store (MODEL_STORE_BACKEND=sqlite).

Uses stdlib sqlite3. Artifacts are stored as BLOBs; the unique index on
(hash, language, type, context, created_on) keeps writes append-only.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from nlucore.core.models import ModelArtifact, ModelMeta
from nlucore.store.base_model_store import BaseModelStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS model_artifacts (
    hash TEXT NOT NULL,
    language TEXT NOT NULL,
    type TEXT NOT NULL,
    context TEXT NOT NULL,
    created_on TEXT NOT NULL,
    scope TEXT NOT NULL,
    payload BLOB NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_artifact_identity
    ON model_artifacts(hash, language, type, context, created_on);
CREATE INDEX IF NOT EXISTS idx_hash_language ON model_artifacts(hash, language);
"""


class SqliteModelStore(BaseModelStore):
    """SQLite-backed model store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def model_exists(self, model_hash: str, language: str) -> bool:
        cursor = self._conn.execute(
            "SELECT 1 FROM model_artifacts WHERE hash = ? AND language = ? LIMIT 1",
            (model_hash, language),
        )
        return cursor.fetchone() is not None

    async def get_models_from_hash(self, model_hash: str, language: str) -> list[ModelArtifact]:
        cursor = self._conn.execute(
            """SELECT hash, type, context, created_on, scope, payload
               FROM model_artifacts WHERE hash = ? AND language = ?""",
            (model_hash, language),
        )
        artifacts: list[ModelArtifact] = []
        for row in cursor.fetchall():
            try:
                artifacts.append(
                    ModelArtifact(
                        meta=ModelMeta(
                            hash=row[0],
                            type=row[1],
                            context=row[2],
                            created_on=datetime.fromisoformat(row[3]),
                            scope=row[4],
                        ),
                        payload=bytes(row[5]),
                    )
                )
            except Exception as e:
                logger.warning("Skipping unreadable model artifact %s/%s: %s", row[0], row[1], e)
                continue
        return artifacts

    async def persist_models(self, artifacts: list[ModelArtifact], language: str) -> None:
        self._conn.executemany(
            """INSERT OR IGNORE INTO model_artifacts
               (hash, language, type, context, created_on, scope, payload)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [
                (
                    a.meta.hash,
                    language,
                    a.meta.type,
                    a.meta.context,
                    a.meta.created_on.isoformat(),
                    a.meta.scope,
                    sqlite3.Binary(a.payload),
                )
                for a in artifacts
            ],
        )
        self._conn.commit()

    async def list_hashes(self, language: str) -> list[str]:
        cursor = self._conn.execute(
            "SELECT DISTINCT hash FROM model_artifacts WHERE language = ? ORDER BY hash",
            (language,),
        )
        return [row[0] for row in cursor.fetchall()]

    async def prune(self, keep_hash: str, language: str) -> int:
        cursor = self._conn.execute(
            "DELETE FROM model_artifacts WHERE language = ? AND hash != ?",
            (language, keep_hash),
        )
        self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
