# airmetrics/services/cache.py
import asyncio
import hashlib
import json
import logging
import time
from typing import Any, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ResultCache(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...


def cache_key(prefix: str, operation: str, mode: str, params: dict[str, Any]) -> str:
    """Stable signature of (operation, mode, normalized params)."""
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}:{operation}:{mode}:{digest}"


class NullCache:
    """Cache deshabilitada: nunca hay hit, set se descarta."""

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def close(self) -> None:
        return None


class RedisResultCache:
    """
    Fail-open Redis cache.

    Connects lazily on first use. A connection cycle makes at most
    `connect_attempts` pings; if all fail the cache behaves as empty until
    `retry_after` seconds have passed, then the next request tries again.
    Errors during get/set drop the connection and are never raised.
    """

    def __init__(
        self,
        url: str,
        connect_attempts: int = 3,
        retry_after: float = 20.0,
        socket_timeout: float = 1.0,
    ):
        self.url = url
        self.connect_attempts = max(1, connect_attempts)
        self.retry_after = retry_after
        self.socket_timeout = socket_timeout
        self._client: Optional[Redis] = None
        self._disabled_until: Optional[float] = None
        # un solo request conecta; el resto espera y reutiliza el resultado
        self._connect_lock = asyncio.Lock()

    async def _get_client(self) -> Optional[Redis]:
        if self._client is not None:
            return self._client
        async with self._connect_lock:
            return await self._connect()

    async def _connect(self) -> Optional[Redis]:
        if self._client is not None:
            return self._client
        now = time.monotonic()
        if self._disabled_until is not None and now < self._disabled_until:
            return None

        for attempt in range(1, self.connect_attempts + 1):
            client = Redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.warning("Redis connect attempt %d/%d failed: %s", attempt, self.connect_attempts, e)
                await self._dispose(client)
                continue
            self._client = client
            self._disabled_until = None
            logger.info("Redis cache connected")
            return client

        self._disabled_until = now + self.retry_after
        logger.warning("Redis cache unavailable; running uncached for %.0fs", self.retry_after)
        return None

    async def _dispose(self, client: Redis) -> None:
        try:
            await client.aclose()
        except (RedisError, OSError):
            pass

    async def _drop(self, e: Exception) -> None:
        logger.warning("Redis cache error, dropping connection: %s", e)
        client, self._client = self._client, None
        if client is not None:
            await self._dispose(client)

    async def get(self, key: str) -> Optional[str]:
        client = await self._get_client()
        if client is None:
            return None
        try:
            return await client.get(key)
        except (RedisError, OSError) as e:
            await self._drop(e)
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        client = await self._get_client()
        if client is None:
            return
        try:
            await client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            await self._drop(e)

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await self._dispose(client)
