"""Shared fixtures.

Settings are read once at import time, so the environment is prepared
before anything from ``app`` is imported.
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Callable

_db_dir = tempfile.mkdtemp(prefix="newsdesk-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'newsdesk.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GITHUB_CLIENT_ID"] = "github-client-id"
os.environ["GITHUB_CLIENT_SECRET"] = "github-client-secret"
os.environ["GOOGLE_CLIENT_ID"] = "google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "google-client-secret"
os.environ["GROQ_API_KEY"] = "test-groq-key"
os.environ["SENTRY_DSN"] = ""
os.environ["OTLP_ENDPOINT"] = ""

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app import models  # noqa: E402, F401
from app.core.database import Base, DatabaseConnection, close_db, get_database  # noqa: E402
from app.core.deps import AUTH_COOKIE_NAME  # noqa: E402
from app.core.security import create_session_token  # noqa: E402
from app.main import app  # noqa: E402

TEST_USER_ID = "5f1d7c3e-0000-4000-8000-000000000001"
TEST_EMAIL = "reader@example.com"


def session_cookie(claims: dict | None = None) -> str:
    """Cookie header value carrying a signed session token."""
    if claims is None:
        claims = {"sub": TEST_USER_ID, "userId": TEST_USER_ID, "email": TEST_EMAIL, "name": "Reader"}
    return f"{AUTH_COOKIE_NAME}={create_session_token(claims)}"


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseConnection, None]:
    """Fresh schema for each test; the engine is disposed afterwards."""
    db = get_database()
    await db.connect()
    assert db.engine is not None
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db

    if db.engine is not None:
        async with db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await close_db()


@pytest_asyncio.fixture
async def client(database: DatabaseConnection) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous API client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_client(database: DatabaseConnection) -> Callable[..., AsyncClient]:
    """Factory for clients that send a session cookie with every request.

    Use as an async context manager: ``async with make_client() as ac``.
    """

    def _make(claims: dict | None = None) -> AsyncClient:
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Cookie": session_cookie(claims)},
        )

    return _make


@pytest.fixture
def article() -> dict:
    return {
        "url": "https://news.example.com/2024/05/markets-rally",
        "title": "Markets rally on rate cut hopes",
        "description": "Stocks climbed for a third day.",
        "urlToImage": "https://news.example.com/img/markets.jpg",
        "publishedAt": "2024-05-02T09:30:00Z",
        "source": {"name": "Example Wire"},
    }
