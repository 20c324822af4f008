from __future__ import annotations

import logging
from uuid import uuid4

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)


def client_name(prefix: str = "bluectl") -> str:
    """Return a fresh client identifier for one broker connection."""
    return f"{prefix}-{uuid4().hex}"


class PubSubClient:
    """One Redis connection, owned by a single subscription."""

    def __init__(
        self,
        url: str,
        *,
        name: str | None = None,
        socket_timeout: float | None = None,
        socket_connect_timeout: float = 5.0,
    ) -> None:
        self._name = name or client_name()
        pool = ConnectionPool.from_url(
            url,
            max_connections=1,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            client_name=self._name,
        )
        self._redis = Redis(connection_pool=pool)

    @property
    def name(self) -> str:
        return self._name

    @property
    def redis(self) -> Redis:
        return self._redis

    def pubsub(self) -> PubSub:
        return self._redis.pubsub()

    async def close(self) -> None:
        await self._redis.aclose(close_connection_pool=True)
        logger.debug("Broker connection closed", extra={"client_name": self._name})
