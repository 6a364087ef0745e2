"""
Storage Module
==============

Persistent key-value stores for block caches.

Backends:
- Memory (process-local, default)
- File (one JSON document per address)
- Redis

Usage:
    from monadverify.storage import get_store

    store = get_store()
    await store.set("monadverify_block_cache", "0xabc...", payload)
"""

from monadverify.config import CacheBackend, settings
from monadverify.logging import get_logger
from monadverify.storage.store import JsonFileStore, KeyValueStore, MemoryStore

logger = get_logger(__name__)

# Global store instance
_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    """Get the store configured by ``settings.cache.backend``."""
    global _store

    if _store is None:
        backend = settings.cache.backend

        if backend == CacheBackend.MEMORY:
            _store = MemoryStore()
        elif backend == CacheBackend.FILE:
            _store = JsonFileStore(settings.cache.directory)
        elif backend == CacheBackend.REDIS:
            from monadverify.storage.redis import RedisStore

            _store = RedisStore()
        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        logger.info("store_initialized", backend=backend.value)

    return _store


def set_store(store: KeyValueStore) -> None:
    global _store
    _store = store


def reset_store() -> None:
    """Reset the store to be re-initialized."""
    global _store
    _store = None


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "get_store",
    "set_store",
    "reset_store",
]
