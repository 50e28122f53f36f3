"""Store contract: cached broker documents and single-use nonces."""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict

JSONObject = dict[str, Any]


class CachedDocument(BaseModel):
    """A fetched JSON document and the epoch time it stops being served."""

    model_config = ConfigDict(frozen=True)

    data: JSONObject
    expires_at: float


class NonceRecord(BaseModel):
    """Identity a nonce was issued for, and its expiry."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    email: str
    expires_at: float

    def matches(self, client_id: str, email: str, now: float) -> bool:
        return self.client_id == client_id and self.email == email and now < self.expires_at


class Store(Protocol):
    """Capability the client needs for caching and replay protection.

    Implementations must make ``consume_nonce`` a single indivisible
    lookup-and-delete, and must never expose a partially written cache entry.
    """

    async def fetch_cached(self, cache_id: str, url: str) -> JSONObject:
        """Return the cached document for ``cache_id``, fetching ``url`` on a miss."""
        ...

    async def create_nonce(self, client_id: str, email: str) -> str:
        """Generate, record and return a nonce bound to ``(client_id, email)``."""
        ...

    async def consume_nonce(self, nonce: str, client_id: str, email: str) -> None:
        """Delete the nonce, raising ``InvalidNonceError`` unless it was valid."""
        ...
