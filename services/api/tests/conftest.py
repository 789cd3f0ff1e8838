"""Shared fixtures: per-test SQLite database, HTTP client, user/store factories."""

import os

# Settings are cached on first use, so test env must be in place before app imports.
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DASHBOARD_CACHE_TTL", "30")

from collections.abc import Sequence

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from store_ratings.main import app
from store_ratings.models import Rating, Store, StoreCategory, User, UserRole
from store_ratings.services.security import create_access_token
from store_ratings.services.users import add_user
from store_ratings.stores import postgres

DEFAULT_PASSWORD = "Secret#Pass1"


class FakeRedis:
    """Minimal async stand-in for the redis client used by stores/redis.py."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database per test."""
    await postgres.init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await postgres.create_tables()
    yield
    await postgres.close_db()


@pytest.fixture
async def client(db):
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    """Enable Redis-backed features against an in-memory fake."""
    from store_ratings.stores import redis as redis_store

    fake = FakeRedis()
    monkeypatch.setattr(redis_store, "_redis", fake)
    monkeypatch.setattr(redis_store, "redis_enabled", lambda: True)
    return fake


@pytest.fixture
def make_user(db):
    """Factory creating users through the user service (hashed password)."""
    counter = {"n": 0}

    async def _make(
        role: UserRole = UserRole.USER,
        *,
        email: str | None = None,
        name: str = "Test User Account Name",
        password: str = DEFAULT_PASSWORD,
        address: str = "1 Test Street",
    ) -> User:
        counter["n"] += 1
        async with postgres.get_session() as session:
            return await add_user(
                session,
                name=name,
                email=email or f"{role.value}{counter['n']}@example.com",
                password=password,
                address=address,
                role=role,
            )

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}

    return _headers


async def _rater_id(session, index: int) -> int:
    email = f"rater{index}@example.com"
    result = await session.execute(select(User.id).where(User.email == email))
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing
    user = User(name=f"Rater {index}", email=email, password="!", address="", role=UserRole.USER)
    session.add(user)
    await session.flush()
    return user.id


@pytest.fixture
def make_store(db):
    """Factory creating a store plus one rating per score (distinct raters)."""
    counter = {"n": 0}

    async def _make(
        name: str,
        scores: Sequence[int] = (),
        *,
        email: str | None = None,
        address: str | None = None,
        owner_id: int | None = None,
        category: StoreCategory = StoreCategory.OTHER,
    ) -> int:
        counter["n"] += 1
        async with postgres.get_session() as session:
            store = Store(
                name=name,
                email=email or f"store{counter['n']}@stores.example.com",
                address=address or f"{counter['n']} Market Street",
                category=category,
                owner_id=owner_id,
            )
            session.add(store)
            await session.flush()
            for i, score in enumerate(scores):
                rater = await _rater_id(session, i)
                session.add(Rating(user_id=rater, store_id=store.id, rating=score))
            return store.id

    return _make
