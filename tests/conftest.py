"""Pytest fixtures for application-level tests."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.app import create_app
from src.config import settings
from src.database.session import get_db
from src.middleware.rate_limit import limiter
from src.modules.tenancy.directory import DirectoryTransportError
from src.modules.tenancy.schemas import TenantIdentity, TenantLookup

ACME_ID = "0b6c1c0e-1111-4a4a-9999-000000000001"
GLOBEX_ID = "0b6c1c0e-2222-4a4a-9999-000000000002"

ACME = TenantIdentity(id=ACME_ID, name="Acme Kitchens", slug="acme", custom_domain="plan.acme.com")
GLOBEX = TenantIdentity(id=GLOBEX_ID, name="Globex", slug="globex")
DORMANT = TenantIdentity(id="0b6c1c0e-3333-4a4a-9999-000000000003", name="Dormant", slug="dormant", is_active=False)


class StubDirectory:
    """In-memory tenant directory; slugs listed in ``unreachable`` fail in transport."""

    def __init__(self, tenants: list[TenantIdentity]) -> None:
        self.tenants = {tenant.slug: tenant for tenant in tenants}
        self.unreachable: set[str] = set()
        self.calls: list[TenantLookup] = []

    async def lookup(self, lookup: TenantLookup) -> TenantIdentity | None:
        self.calls.append(lookup)
        if lookup.slug in self.unreachable:
            raise DirectoryTransportError("Directory returned HTTP 503")
        if lookup.slug is not None:
            return self.tenants.get(lookup.slug)
        return next(
            (t for t in self.tenants.values() if t.custom_domain == lookup.domain),
            None,
        )

    async def aclose(self) -> None:
        pass


def make_token(role: str, tenant_id: str | None = None, **claims) -> dict[str, str]:
    """Authorization header for a token carrying ``role``."""
    payload = {"sub": f"user-{role}", "role": role, **claims}
    if tenant_id:
        payload["tenant_id"] = tenant_id
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def directory() -> StubDirectory:
    return StubDirectory([ACME, GLOBEX, DORMANT])


@pytest.fixture
def mock_db() -> AsyncMock:
    """AsyncSession double whose every execute returns an empty row set."""
    db = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = []
    db.execute.return_value = result
    return db


@pytest.fixture
def app(directory: StubDirectory, mock_db: AsyncMock) -> FastAPI:
    """A fresh application wired to the stub directory and the mock database."""
    application = create_app(directory=directory)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_db

    application.dependency_overrides[get_db] = override_get_db
    limiter.reset()
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the test application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://acme.automattion-compass.com") as client:
        yield client

    await app.state.tenant_sessions.close()


@pytest_asyncio.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session that rolls back after each test.

    Skips when the configured PostgreSQL instance is not reachable.
    """
    test_engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with test_engine.connect():
            pass
    except (OSError, SQLAlchemyError) as exc:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not available: {exc}")

    async with session_factory() as session:
        async with session.begin():
            yield session
            await session.rollback()

    await test_engine.dispose()


@pytest.fixture
def auth_headers():
    """Factory for bearer headers, e.g. ``auth_headers("admin", tenant_id)``."""
    return make_token
