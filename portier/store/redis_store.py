"""Redis-backed store, shared between processes."""

import json

import redis.asyncio as redis
import structlog

from portier.core.errors import InvalidNonceError
from portier.store.base import JSONObject
from portier.store.fetch import DocumentFetcher, generate_nonce

logger = structlog.get_logger(__name__)


class RedisStore:
    """Stores cached documents and nonces as expiring Redis keys.

    Redis enforces expiry itself, so no clock is consulted here.
    """

    def __init__(
        self,
        client: redis.Redis,
        fetcher: DocumentFetcher | None = None,
    ) -> None:
        self.redis = client
        self.fetcher = fetcher or DocumentFetcher()

    @classmethod
    def from_url(cls, url: str, fetcher: DocumentFetcher | None = None) -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), fetcher)

    async def fetch_cached(self, cache_id: str, url: str) -> JSONObject:
        key = f"cache:{cache_id}"
        cached = await self.redis.get(key)
        if cached:
            return json.loads(cached)

        logger.debug("cache_miss", cache_id=cache_id)
        res = await self.fetcher.fetch(url)
        await self.redis.setex(key, res.ttl, json.dumps(res.data))
        return res.data

    async def create_nonce(self, client_id: str, email: str) -> str:
        nonce = generate_nonce()
        value = json.dumps({"client_id": client_id, "email": email})
        await self.redis.setex(f"nonce:{nonce}", self.fetcher.nonce_ttl, value)
        return nonce

    async def consume_nonce(self, nonce: str, client_id: str, email: str) -> None:
        key = f"nonce:{nonce}"
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.get(key)
            pipe.delete(key)
            stored, _ = await pipe.execute()
        if not stored:
            raise InvalidNonceError()
        record = json.loads(stored)
        if record.get("client_id") != client_id or record.get("email") != email:
            raise InvalidNonceError()

    async def aclose(self) -> None:
        await self.fetcher.aclose()
        await self.redis.aclose()
