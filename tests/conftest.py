"""Shared pytest fixtures for store, cache, resolver and API tests."""

import datetime
from collections.abc import AsyncGenerator, Awaitable, Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import redis.asyncio as redis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from shortlink.background import BackgroundTaskRunner
from shortlink.cache import LinkCache
from shortlink.codegen import RandomCodeGenerator
from shortlink.config import Settings
from shortlink.database import close_db, create_engine, create_session_factory, init_db
from shortlink.dependencies import ServiceContainer
from shortlink.main import create_app
from shortlink.models import Link, new_link_id, utcnow
from shortlink.store import LinkStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'shortlink.db'}",
        REDIS_URL="redis://localhost:6379/15",
        CACHE_TIMEOUT_SECONDS=0.05,
        STORE_TIMEOUT_SECONDS=5.0,
        SHUTDOWN_DRAIN_SECONDS=1.0,
        ENABLE_METRICS=False,
        LOG_LEVEL="DEBUG",
    )


@pytest_asyncio.fixture(scope="function")
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> LinkStore:
    return LinkStore(session_factory, timeout=settings.STORE_TIMEOUT_SECONDS)


@pytest.fixture
def redis_client() -> AsyncMock:
    """Dict-backed Redis mock; ``.data`` and ``.ttls`` expose what was written."""
    data: dict[str, str] = {}
    ttls: dict[str, int] = {}

    async def _get(key: str) -> str | None:
        return data.get(key)

    async def _setex(key: str, ttl: int, value: str) -> bool:
        data[key] = value
        ttls[key] = ttl
        return True

    client = AsyncMock(spec=redis.Redis)
    client.get = AsyncMock(side_effect=_get)
    client.setex = AsyncMock(side_effect=_setex)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock(return_value=None)
    client.data = data
    client.ttls = ttls
    return client


@pytest.fixture
def cache(redis_client: AsyncMock, settings: Settings) -> LinkCache:
    return LinkCache(redis_client, key_prefix=settings.CACHE_KEY_PREFIX, timeout=settings.CACHE_TIMEOUT_SECONDS)


@pytest_asyncio.fixture(scope="function")
async def runner() -> AsyncGenerator[BackgroundTaskRunner, None]:
    runner = BackgroundTaskRunner()
    yield runner
    await runner.drain(timeout=5)


@pytest.fixture
def services(settings: Settings, store: LinkStore, cache: LinkCache, runner: BackgroundTaskRunner) -> ServiceContainer:
    generator = RandomCodeGenerator(settings.SHORT_CODE_ALPHABET, settings.SHORT_CODE_LENGTH)
    return ServiceContainer(settings, store, cache, generator, runner=runner)


@pytest_asyncio.fixture(scope="function")
async def client(services: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(services=services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def insert_link(store: LinkStore) -> Callable[..., Awaitable[Link]]:
    """Insert a link directly through the store with explicit timestamps."""

    async def _insert(
        short_code: str,
        target_url: str = "https://example.com/",
        created_at: datetime.datetime | None = None,
        expires_at: datetime.datetime | None = None,
        ttl: datetime.timedelta | None = datetime.timedelta(days=7),
    ) -> Link:
        created_at = created_at or utcnow()
        if expires_at is None and ttl is not None:
            expires_at = created_at + ttl
        link = Link(
            id=new_link_id(),
            target_url=target_url,
            short_code=short_code,
            created_at=created_at,
            expires_at=expires_at,
            clicks=0,
        )
        return await store.insert(link)

    return _insert


class ScriptedGenerator:
    """Code generator that replays a fixed script, then repeats its last code."""

    def __init__(self, *codes: str) -> None:
        assert codes, "at least one code is required"
        self._codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        code = self._codes[min(self.calls, len(self._codes) - 1)]
        self.calls += 1
        return code


@pytest.fixture
def scripted_generator() -> type[ScriptedGenerator]:
    return ScriptedGenerator
