"""Interchangeable tournament stores."""

from __future__ import annotations

from ..config import StoreSettings
from .base import TournamentStore
from .file import FileStore
from .memory import MemoryStore
from .remote import RedisStore

__all__ = [
    "FileStore",
    "MemoryStore",
    "RedisStore",
    "TournamentStore",
    "create_store",
]


def create_store(settings: StoreSettings | None = None) -> TournamentStore:
    """Return the store selected by ``settings`` (read from the environment by default)."""

    settings = settings or StoreSettings.from_env()
    if settings.backend == "file":
        return FileStore(settings.data_dir)
    if settings.backend == "redis":
        return RedisStore.from_url(
            settings.redis_url,
            prefix=settings.redis_prefix,
            operation_timeout=settings.redis_timeout,
        )
    if settings.backend == "memory":
        return MemoryStore()
    raise ValueError(f"unsupported store backend: {settings.backend!r}")
