"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET at import time
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import UTC, datetime  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in AsyncSession: execute/commit/rollback are awaitable mocks."""
    return AsyncMock()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
