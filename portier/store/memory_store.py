"""In-process store, for tests and single-process deployments."""

import time
from collections.abc import Callable

import structlog

from portier.core.errors import InvalidNonceError
from portier.store.base import CachedDocument, JSONObject, NonceRecord
from portier.store.fetch import DocumentFetcher, generate_nonce

logger = structlog.get_logger(__name__)


class MemoryStore:
    """Keeps cached documents and nonces in dictionaries.

    State is lost when the process exits and is not shared between worker
    processes, so nonces created by one worker cannot be consumed by another.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.fetcher = fetcher or DocumentFetcher()
        self._clock = clock
        self._cache: dict[str, CachedDocument] = {}
        self._nonces: dict[str, NonceRecord] = {}

    async def fetch_cached(self, cache_id: str, url: str) -> JSONObject:
        item = self._cache.get(cache_id)
        if item is not None and self._clock() < item.expires_at:
            return item.data

        logger.debug("cache_miss", cache_id=cache_id)
        res = await self.fetcher.fetch(url)
        self._cache[cache_id] = CachedDocument(
            data=res.data, expires_at=self._clock() + res.ttl
        )
        return res.data

    async def create_nonce(self, client_id: str, email: str) -> str:
        nonce = generate_nonce()
        self._nonces[nonce] = NonceRecord(
            client_id=client_id,
            email=email,
            expires_at=self._clock() + self.fetcher.nonce_ttl,
        )
        return nonce

    async def consume_nonce(self, nonce: str, client_id: str, email: str) -> None:
        item = self._nonces.pop(nonce, None)
        if item is None or not item.matches(client_id, email, self._clock()):
            raise InvalidNonceError()

    async def aclose(self) -> None:
        await self.fetcher.aclose()
