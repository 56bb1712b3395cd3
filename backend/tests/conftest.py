"""Root conftest — shared test configuration, async DB and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db dependency overridden to use the test DB
    - Crate sync is replaced by a recorder unless a test opts into the real manager

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - Seed data created through the service layer where one exists, so fixtures
      exercise the same code paths as the API
"""

import os
from uuid import UUID

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)

from crate_api.db.base import Base  # noqa: E402
from crate_api.infrastructure.database import (  # noqa: E402
    enable_sqlite_foreign_keys, get_db,
)
from crate_api.main import app  # noqa: E402
from crate_api.models.session import Session as SessionModel  # noqa: E402
from crate_api.models.user import User  # noqa: E402
from crate_api.services import collections, crate_sync  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
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
async def client(test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def seed_user(test_db):
    user = User(email="ada@example.org", name="Ada")
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def seed_collection(test_db):
    """A collection with its root dataset."""
    return await collections.create_collection(test_db, "Test collection")


@pytest.fixture
async def collection_id(seed_collection):
    return UUID(seed_collection["id"])


@pytest.fixture
async def seed_session(test_db, seed_user, seed_collection):
    """Session owned by seed_user with seed_collection loaded."""
    session = SessionModel(
        user_id=seed_user.id,
        data={
            "current": {
                "collectionId": seed_collection["id"],
                "local": {},
                "remote": {},
            },
        },
    )
    test_db.add(session)
    await test_db.commit()
    return session


@pytest.fixture
async def empty_session(test_db, seed_user):
    """Session owned by seed_user with no collection loaded."""
    session = SessionModel(user_id=seed_user.id, data={})
    test_db.add(session)
    await test_db.commit()
    return session


@pytest.fixture
def auth(seed_session):
    return {"Authorization": f"Bearer {seed_session.id}"}


@pytest.fixture
def crate_recorder(monkeypatch):
    """Replace the crate manager with one that records calls.

    Returns dict with:
      - updates: list of {"local_crate_file", "collection_id", "actions"}
      - saves: list of save_crate kwargs
      - fail: set to an Exception to make update_crate raise it
    """
    record = {"updates": [], "saves": [], "fail": None}

    class _FakeManager:
        async def update_crate(self, local_crate_file, collection_id, actions):
            if record["fail"]:
                raise record["fail"]
            record["updates"].append({
                "local_crate_file": local_crate_file,
                "collection_id": collection_id,
                "actions": actions,
            })
            return {"@graph": []}

        async def save_crate(self, **kwargs):
            record["saves"].append(kwargs)

    monkeypatch.setattr(crate_sync, "manager_factory", lambda db: _FakeManager())
    return record
