import os
import sys

# Provide required auth secrets for tests if not already set
os.environ.setdefault("ENV_SECRET", "test-secret")
os.environ.setdefault("ENV_RESET_PASSWORD_TOKEN_SECRET", "test-reset-secret")
os.environ.setdefault("ENV_VERIFICATION_TOKEN_SECRET", "test-verify-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

# Ensure project root is on sys.path so `auth`, `db`, ... resolve
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


# --- Test utilities: in-memory SQLite shared by the app and the tests ---
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auth.tables import UserTable  # noqa: F401  registers the users table
from db.models import Base
from db.session import get_async_session


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    yield async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(session_factory):
    from main import app

    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session_override
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    # ASGITransport does not run the lifespan, so no real database is touched
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def register_user(client: AsyncClient, email: str, password: str = "s3cret-pass", name: str = "Test User") -> dict:
    res = await client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


@pytest_asyncio.fixture
async def auth_headers(client):
    body = await register_user(client, "alice@example.com")
    return {"Authorization": f"Bearer {body['token']}"}


@pytest_asyncio.fixture
async def other_auth_headers(client):
    body = await register_user(client, "bob@example.com")
    return {"Authorization": f"Bearer {body['token']}"}


@pytest_asyncio.fixture
async def register(client):
    async def _register(email: str, **kwargs) -> dict:
        return await register_user(client, email, **kwargs)

    return _register
