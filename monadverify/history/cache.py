"""
Block Cache Repository
======================

Loads and saves one ``BlockCache`` per user address on top of a
``KeyValueStore``. Backend failures surface as ``StorageError``.

Version: 0.1.0
"""

from pydantic import ValidationError
from redis.exceptions import RedisError

from monadverify.config import settings
from monadverify.errors import StorageError
from monadverify.logging import get_logger
from monadverify.models.verification import BlockCache
from monadverify.storage import KeyValueStore

logger = get_logger(__name__)

STORE_ERRORS = (OSError, RedisError)


class BlockCacheRepository:
    """Typed access to the per-address block caches."""

    def __init__(self, store: KeyValueStore, namespace: str | None = None) -> None:
        self.store = store
        self.namespace = namespace or settings.cache.namespace

    async def load(self, address: str) -> BlockCache | None:
        """
        Read the cache entry for an address.

        Entries that cannot be decoded are treated as absent.
        """
        try:
            raw = await self.store.get(self.namespace, address)
        except STORE_ERRORS as e:
            raise StorageError(f"Block cache read failed: {e}") from e
        if raw is None:
            return None
        try:
            return BlockCache.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "block_cache_unreadable",
                address=address.lower(),
                errors=e.error_count(),
            )
            return None

    async def save(self, address: str, cache: BlockCache) -> None:
        try:
            await self.store.set(self.namespace, address, cache.model_dump_json())
        except STORE_ERRORS as e:
            logger.error("block_cache_save_failed", address=address.lower(), error=str(e))
            raise StorageError(f"Block cache write failed: {e}") from e
        logger.debug(
            "block_cache_saved",
            address=address.lower(),
            last_queried_block=cache.last_queried_block,
        )

    async def clear(self, address: str) -> bool:
        try:
            removed = await self.store.delete(self.namespace, address)
        except STORE_ERRORS as e:
            raise StorageError(f"Block cache delete failed: {e}") from e
        logger.info("block_cache_cleared", address=address.lower(), existed=removed)
        return removed
