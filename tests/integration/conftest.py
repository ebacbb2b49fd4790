"""Integration-test fixtures (requires a migrated PostgreSQL: alembic upgrade head).

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) stays valid across the
whole session. When the database is unreachable or not migrated, every
integration test is skipped.
"""

import uuid
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.main import app
from src.pf_common.database import async_session_factory, engine
from src.pf_gateway.auth.jwt_handler import create_access_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def database_ready() -> None:
    try:
        async with engine.connect() as conn:
            migrated = (
                await conn.execute(text("SELECT to_regclass('public.movements')"))
            ).scalar()
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"PostgreSQL not available: {exc}")
    if migrated is None:
        pytest.skip("Database not migrated (run: alembic upgrade head)")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client(database_ready: None) -> AsyncIterator[AsyncClient]:
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def user_id() -> str:
    """A fresh owner per test, so tests never see each other's accounts."""
    return f"it-{uuid.uuid4().hex[:12]}"


@pytest_asyncio.fixture(loop_scope="session")
async def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest_asyncio.fixture(loop_scope="session")
async def session(database_ready: None) -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as s:
        yield s
