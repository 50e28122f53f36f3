"""Shared HTTP fetching and nonce generation used by every store."""

import re
import secrets
from dataclasses import dataclass

import httpx
import structlog

from portier.core.errors import TransportError
from portier.core.settings import StoreSettings
from portier.store.base import JSONObject

NONCE_BYTES = 16

_MAX_AGE = re.compile(r"max-age\s*=\s*(\d+)")

logger = structlog.get_logger(__name__)


def generate_nonce() -> str:
    """128 bits from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(NONCE_BYTES)


def parse_max_age(cache_control: str | None) -> int:
    """Extract ``max-age`` seconds from a Cache-Control header, 0 if absent."""
    if not cache_control:
        return 0
    match = _MAX_AGE.search(cache_control)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class FetchResult:
    data: JSONObject
    ttl: int


class DocumentFetcher:
    """Fetches broker JSON documents and computes how long to cache them."""

    def __init__(
        self,
        settings: StoreSettings | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or StoreSettings()
        self._http = http or httpx.AsyncClient(timeout=self.settings.http_timeout)

    @property
    def nonce_ttl(self) -> int:
        return self.settings.nonce_ttl

    async def fetch(self, url: str) -> FetchResult:
        """GET ``url`` and parse its body as a JSON object."""
        try:
            res = await self._http.get(url)
            res.raise_for_status()
        except httpx.HTTPError as err:
            raise TransportError(f"Fetch failed: {url}") from err

        try:
            data = res.json()
        except ValueError as err:
            raise TransportError("Invalid response body") from err
        if not isinstance(data, dict):
            raise TransportError("Invalid response body")

        ttl = max(
            self.settings.cache_min_ttl,
            parse_max_age(res.headers.get("Cache-Control")),
        )
        logger.debug("document_fetched", url=url, ttl=ttl)
        return FetchResult(data=data, ttl=ttl)

    async def aclose(self) -> None:
        await self._http.aclose()
