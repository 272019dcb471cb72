"""Shared test fixtures for the CRM API tests.

Uses a fresh in-memory SQLite async engine per test so tests run without
PostgreSQL, and a scripted httpx transport in place of Gallabox.
"""

import httpx
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from crm.core.database import Base, enable_sqlite_foreign_keys, get_db
from crm.core.deps import get_gallabox
from crm.main import app
from crm.services.gallabox import GallaboxClient

# Import all models to ensure they're registered with Base.metadata
import crm.models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(autouse=True)
async def session_factory():
    """Create all tables before each test, drop the whole database after."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db(session_factory):
    """Direct DB session for test setup/assertions. Commit before calling the API."""
    async with session_factory() as session:
        yield session


class FakeGallabox:
    """Records outgoing requests and answers with a scripted response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {"id": "gb-msg-1", "status": "ACCEPTED"}
        self.raw_body = None
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        return httpx.Response(self.status_code, json=self.body)


@pytest_asyncio.fixture
async def fake_gallabox():
    return FakeGallabox()


@pytest_asyncio.fixture
async def gallabox(fake_gallabox):
    """A real GallaboxClient over the fake transport, injected into the app."""
    gallabox_client = GallaboxClient(
        base_url="https://gallabox.test",
        api_key="test-key",
        transport=httpx.MockTransport(fake_gallabox.handler),
    )
    app.dependency_overrides[get_gallabox] = lambda: gallabox_client
    yield gallabox_client
    app.dependency_overrides.pop(get_gallabox, None)
    await gallabox_client.aclose()
