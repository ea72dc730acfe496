"""API test fixtures — async DB + FastAPI test client + fake identity provider.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine
    - get_identity_provider overridden with FakeIdentityProvider (no network)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import app.models  # noqa: F401
from app.db.base import Base
from app.api.dependencies import get_identity_provider
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models.user import User
import app.infrastructure.database as db_module
from app.main import app
from tests.api.fake_identity_provider import FakeIdentityProvider
from tests.api.sample_data import VALID_CPF


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_provider():
    return FakeIdentityProvider()


@pytest.fixture
async def client(test_engine, test_session_factory, fake_provider):
    """FastAPI test client with DB and identity provider overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: fake_provider

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def seed_user(test_db):
    """Active customer with a valid CPF on file."""
    user = User(
        email="ana@example.com",
        full_name="Ana Souza",
        document_type="cpf",
        document_number=VALID_CPF,
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user
