"""FastAPI application factory for a Portier relying party."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portier.core.logging import configure_logging
from portier.core.settings import ClientSettings, StoreSettings
from portier.oidc.client import Client
from portier.oidc.routes_login import router as login_router
from portier.store.fetch import DocumentFetcher
from portier.store.memory_store import MemoryStore
from portier.store.redis_store import RedisStore
from portier.store.sql_store import SqlStore

AnyStore = MemoryStore | RedisStore | SqlStore


def build_store(settings: StoreSettings) -> AnyStore:
    """Create the store selected by ``settings.backend``."""
    fetcher = DocumentFetcher(settings)
    if settings.backend == "redis":
        return RedisStore.from_url(settings.redis_url, fetcher)
    if settings.backend == "sql":
        return SqlStore.from_url(settings.database_url, fetcher)
    return MemoryStore(fetcher)


def create_app(store: AnyStore | None = None, settings: ClientSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    configure_logging()
    store = store or build_store(StoreSettings())
    client = Client(store, settings or ClientSettings())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if isinstance(store, SqlStore):
            await store.init_schema()
        yield
        await store.aclose()

    app = FastAPI(
        title="Portier relying party",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.portier_client = client
    app.include_router(login_router)

    return app
