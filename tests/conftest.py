# tests/conftest.py

from __future__ import annotations

import os


def _ensure_test_env() -> None:
    """Seed required environment variables for tests."""
    os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
    os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test-key")
    os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
    os.environ.setdefault("ENCRYPTION_KEY", "x" * 32)
    os.environ.setdefault("LOG_FORMAT", "plain")


_ensure_test_env()

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from studentos.api import create_app  # noqa: E402
from studentos.config import Settings  # noqa: E402
from studentos.db import build_session_factory  # noqa: E402
from studentos.models import Base  # noqa: E402

from .fakes import FakeVerifier  # noqa: E402


@pytest.fixture()
async def engine():
    """Fresh in-memory SQLite database per test, shared across sessions."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture()
def app(settings, verifier, session_factory):
    return create_app(settings, verifier=verifier, session_factory=session_factory)


@pytest.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
