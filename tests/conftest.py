import os

# Settings are read at import time, so configure the environment first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CREATE_SCHEMA"] = "false"
os.environ["AUTH_JWT_SECRET"] = "test-secret-for-identity-tokens-long-enough"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["OPENAI_API_KEY"] = "test-openai-key"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from snippet_hub.api.dependencies import get_snippet_repository
from snippet_hub.auth.jwt_utils import create_identity_token
from snippet_hub.db import Base, build_engine, build_session_factory
from snippet_hub.main import create_app
from snippet_hub.realtime.live_query import LiveQueryHub
from snippet_hub.snippets.models import SnippetDraft
from snippet_hub.snippets.repository import SnippetRepository


class BrokenSessionFactory:
    """Session factory whose every session fails to open."""

    def __call__(self):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))


@pytest_asyncio.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def hub():
    live_hub = LiveQueryHub()
    yield live_hub
    live_hub.close()


@pytest_asyncio.fixture
async def repo(session_factory, hub):
    return SnippetRepository(session_factory, hub)


@pytest_asyncio.fixture
async def app(repo):
    application = create_app()
    application.dependency_overrides[get_snippet_repository] = lambda: repo
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(uid="alice", display_name="Alice", email=None):
    token = create_identity_token(uid, display_name=display_name, email=email)
    return {"Authorization": f"Bearer {token}"}


def make_draft(**overrides):
    values = {
        "title": "Hello world",
        "description": "",
        "code": "print('hello')",
        "language": "Python",
        "framework": None,
        "tags": [],
        "is_public": True,
        "author": "Alice",
        "user_id": "alice",
    }
    values.update(overrides)
    return SnippetDraft(**values)
