# tests/unit/store/test_model_stores.py - v1
"""Functional tests shared by the JSON and SQLite model stores."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from nlucore.core.models import ModelArtifact, ModelMeta, ModelType
from nlucore.store.json_store import JsonModelStore
from nlucore.store.sqlite_store import SqliteModelStore

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _artifact(model_hash: str, model_type: str, context: str = "global", payload: bytes = b"\x00\x01bin") -> ModelArtifact:
    return ModelArtifact(
        meta=ModelMeta(context=context, hash=model_hash, type=model_type, created_on=T0),
        payload=payload,
    )


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path):
    if request.param == "json":
        backend = JsonModelStore(root=tmp_path / "models")
    else:
        backend = SqliteModelStore(db_path=tmp_path / "models.db")
    yield backend
    backend.close()


class TestModelStore:
    @pytest.mark.asyncio
    async def test_exists_after_persist(self, store):
        assert await store.model_exists("h1", "en") is False
        await store.persist_models([_artifact("h1", ModelType.INTENT_L0)], "en")
        assert await store.model_exists("h1", "en") is True
        assert await store.model_exists("h1", "fr") is False

    @pytest.mark.asyncio
    async def test_round_trip_payload_and_meta(self, store):
        artifact = _artifact("h1", ModelType.SLOT_CRF, payload=bytes(range(256)))
        await store.persist_models([artifact], "en")
        [loaded] = await store.get_models_from_hash("h1", "en")
        assert loaded.payload == bytes(range(256))
        assert loaded.meta.type == ModelType.SLOT_CRF
        assert loaded.meta.created_on == T0

    @pytest.mark.asyncio
    async def test_get_missing_hash(self, store):
        assert await store.get_models_from_hash("nope", "en") == []

    @pytest.mark.asyncio
    async def test_persist_never_overwrites(self, store):
        await store.persist_models([_artifact("h1", ModelType.SLOT_CRF, payload=b"first")], "en")
        await store.persist_models([_artifact("h1", ModelType.SLOT_CRF, payload=b"second")], "en")
        artifacts = await store.get_models_from_hash("h1", "en")
        assert [a.payload for a in artifacts] == [b"first"]

    @pytest.mark.asyncio
    async def test_one_artifact_per_type_and_context(self, store):
        await store.persist_models(
            [
                _artifact("h1", ModelType.INTENT_L1, context="global"),
                _artifact("h1", ModelType.INTENT_L1, context="travel"),
                _artifact("h1", ModelType.SLOT_LANGUAGE),
            ],
            "en",
        )
        assert len(await store.get_models_from_hash("h1", "en")) == 3

    @pytest.mark.asyncio
    async def test_list_hashes_and_prune(self, store):
        await store.persist_models([_artifact("h1", ModelType.INTENT_L0)], "en")
        await store.persist_models(
            [_artifact("h2", ModelType.INTENT_L0), _artifact("h2", ModelType.SLOT_CRF)], "en"
        )
        await store.persist_models([_artifact("h2", ModelType.INTENT_L0)], "fr")
        assert await store.list_hashes("en") == ["h1", "h2"]

        removed = await store.prune("h1", "en")
        assert removed == 2
        assert await store.list_hashes("en") == ["h1"]
        assert await store.list_hashes("fr") == ["h2"]


class TestJsonModelStore:
    @pytest.mark.asyncio
    async def test_skips_corrupt_file(self, tmp_path):
        store = JsonModelStore(root=tmp_path)
        await store.persist_models([_artifact("h1", ModelType.SLOT_CRF)], "en")
        (tmp_path / "en" / "h1" / "broken.global.0.json").write_text("{not json")
        artifacts = await store.get_models_from_hash("h1", "en")
        assert len(artifacts) == 1

    @pytest.mark.asyncio
    async def test_layout(self, tmp_path):
        store = JsonModelStore(root=tmp_path)
        await store.persist_models([_artifact("h1", ModelType.SLOT_CRF)], "en")
        files = list((tmp_path / "en" / "h1").glob("*.json"))
        assert len(files) == 1
        assert files[0].name.startswith("slot-crf.global.")
