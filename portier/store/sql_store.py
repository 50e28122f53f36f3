"""SQL-backed store using SQLAlchemy async sessions."""

import time
from collections.abc import Callable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine

from portier.core.errors import ConfigurationError, InvalidNonceError
from portier.db.engine import create_engine, create_session_factory, init_schema
from portier.db.models_store import CachedDocumentEntity, NonceEntity
from portier.store.base import JSONObject
from portier.store.fetch import DocumentFetcher, generate_nonce

logger = structlog.get_logger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE.
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlStore:
    """Keeps cached documents and nonces in database tables."""

    def __init__(
        self,
        engine: AsyncEngine,
        fetcher: DocumentFetcher | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if engine.dialect.name not in UPSERT_INSERTS:
            raise ConfigurationError(f"Unsupported database: {engine.dialect.name}")
        self.engine = engine
        self._sessions = create_session_factory(engine)
        self.fetcher = fetcher or DocumentFetcher()
        self._clock = clock

    async def fetch_cached(self, cache_id: str, url: str) -> JSONObject:
        async with self._sessions() as session:
            stmt = select(CachedDocumentEntity).where(
                CachedDocumentEntity.cache_id == cache_id
            )
            entity = (await session.execute(stmt)).scalar_one_or_none()
            if entity is not None and self._clock() < entity.expires_at:
                return entity.data

        logger.debug("cache_miss", cache_id=cache_id)
        res = await self.fetcher.fetch(url)
        insert = UPSERT_INSERTS[self.engine.dialect.name]
        upsert = insert(CachedDocumentEntity).values(
            cache_id=cache_id, data=res.data, expires_at=self._clock() + res.ttl
        )
        # Concurrent refreshes of one entry: last writer wins.
        upsert = upsert.on_conflict_do_update(
            index_elements=[CachedDocumentEntity.cache_id],
            set_={"data": upsert.excluded.data, "expires_at": upsert.excluded.expires_at},
        )
        async with self._sessions() as session, session.begin():
            await session.execute(upsert)
        return res.data

    async def create_nonce(self, client_id: str, email: str) -> str:
        nonce = generate_nonce()
        async with self._sessions() as session, session.begin():
            session.add(
                NonceEntity(
                    nonce=nonce,
                    client_id=client_id,
                    email=email,
                    expires_at=self._clock() + self.fetcher.nonce_ttl,
                )
            )
        return nonce

    async def consume_nonce(self, nonce: str, client_id: str, email: str) -> None:
        stmt = (
            delete(NonceEntity)
            .where(NonceEntity.nonce == nonce)
            .returning(NonceEntity.client_id, NonceEntity.email, NonceEntity.expires_at)
        )
        async with self._sessions() as session, session.begin():
            row = (await session.execute(stmt)).one_or_none()
        if row is None:
            raise InvalidNonceError()
        stored_client_id, stored_email, expires_at = row
        if (
            stored_client_id != client_id
            or stored_email != email
            or self._clock() >= expires_at
        ):
            raise InvalidNonceError()

    async def purge_expired(self) -> int:
        """Delete nonces past their expiry, returning how many were removed."""
        stmt = delete(NonceEntity).where(NonceEntity.expires_at <= self._clock())
        async with self._sessions() as session, session.begin():
            result = await session.execute(stmt)
        return result.rowcount

    @classmethod
    def from_url(cls, url: str, fetcher: DocumentFetcher | None = None) -> "SqlStore":
        return cls(create_engine(url), fetcher)

    async def init_schema(self) -> None:
        await init_schema(self.engine)

    async def aclose(self) -> None:
        await self.fetcher.aclose()
        await self.engine.dispose()
