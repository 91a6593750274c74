# src/store/store_factory.py - v1
"""Factory for model store instantiation."""

from __future__ import annotations

from nlucore.config.settings import Settings
from nlucore.store.base_model_store import BaseModelStore


def create_model_store(settings: Settings | None = None) -> BaseModelStore:
    """Instantiate the configured model store backend.

    Artifacts are namespaced per bot under ``model_store_root``.

    Args:
        settings: Engine settings. Defaults to the JSON backend.
    """
    backend = "json" if settings is None else settings.model_store_backend
    root = "~/.nlucore/models" if settings is None else str(settings.model_store_root)
    bot_id = "default" if settings is None else settings.bot_id

    if backend == "json":
        from nlucore.store.json_store import JsonModelStore

        return JsonModelStore(root=f"{root}/{bot_id}")

    if backend == "sqlite":
        from nlucore.store.sqlite_store import SqliteModelStore

        return SqliteModelStore(db_path=f"{root}/{bot_id}/models.db")

    raise ValueError(f"Unsupported model store backend: {backend!r}")
