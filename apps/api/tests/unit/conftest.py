"""
Unit test configuration - uses in-memory SQLite for isolation
"""
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cloudctrl.core.crypto import CredentialCipher
from cloudctrl.core.database import Base
from cloudctrl.repositories.cache import ResponseCache
from cloudctrl.repositories.credentials import CredentialRepository
from cloudctrl.resolvers import ClientCache

# Import models to register them with Base.metadata
from cloudctrl.models import CacheEntry, RefreshLog, UserCredential  # noqa: F401

# In-memory SQLite for fast unit tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_MASTER_KEY = bytes(range(32))


class FakeClock:
    """Settable clock for cache expiry and refresh window tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta) -> None:
        self.now = self.now + delta


@pytest_asyncio.fixture
async def session_factory():
    """Isolated in-memory database per test; one shared connection keeps the data alive"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def cipher():
    return CredentialCipher(TEST_MASTER_KEY)


@pytest.fixture
def clock():
    # A Wednesday afternoon, outside the default 08:00 refresh hour
    return FakeClock(datetime(2024, 5, 15, 14, 30, 0))


@pytest.fixture
def credential_store(session_factory):
    return CredentialRepository(session_factory)


@pytest.fixture
def response_cache(session_factory, clock):
    return ResponseCache(session_factory, clock=clock)


@pytest.fixture
def client_cache():
    return ClientCache()
