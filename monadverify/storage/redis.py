"""
Redis Store
===========

Async Redis backend for block caches.

Version: 0.1.0
"""

from typing import Any

import redis.asyncio as aioredis
from redis.asyncio import Redis

from monadverify.config import settings
from monadverify.logging import get_logger
from monadverify.storage.store import KeyValueStore, normalize_address

logger = get_logger(__name__)


class RedisStore(KeyValueStore):
    """
    Store entries as ``<namespace>:<address>`` string keys.

    Entries never expire; a block cache is only invalidated explicitly.
    """

    def __init__(self, client: Redis | None = None, url: str | None = None) -> None:  # type: ignore[type-arg]
        self._client = client
        self._url = url or settings.redis.url

    @property
    def name(self) -> str:
        return "redis"

    @property
    def client(self) -> Redis:  # type: ignore[type-arg]
        """Get or create the async client."""
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_client_created", host=settings.redis.host)
        return self._client

    @staticmethod
    def key(namespace: str, address: str) -> str:
        return f"{namespace}:{normalize_address(address)}"

    async def get(self, namespace: str, address: str) -> str | None:
        return await self.client.get(self.key(namespace, address))

    async def set(self, namespace: str, address: str, value: str) -> None:
        await self.client.set(self.key(namespace, address), value)

    async def delete(self, namespace: str, address: str) -> bool:
        return await self.client.delete(self.key(namespace, address)) > 0

    async def health_check(self) -> dict[str, Any]:
        try:
            pong = await self.client.ping()
            return {"status": "healthy" if pong else "unhealthy"}
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("redis_client_closed")
