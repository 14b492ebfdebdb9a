"""Shared test fixtures — async DB, client, configuration factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Point settings at SQLite before any import touches pydantic-settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_engine.applications.schemas import RequestRules
from leave_engine.common.constants import LeaveCategory
from leave_engine.configuration import rules
from leave_engine.configuration.schemas import LeaveConfiguration
from leave_engine.database import Base, get_db
from leave_engine.main import create_app

# Register every table on Base.metadata
import leave_engine.common.audit  # noqa: F401
import leave_engine.configuration.models  # noqa: F401


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Factories ───────────────────────────────────────────────────────

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
# Monday
TODAY = date(2026, 3, 2)

RULES = RequestRules()


def _credit_policy(**overrides: Any) -> dict:
    return {"value": "1.5", "frequency": "monthly", "maxLimit": "18", **overrides}


def _expire_policy(**overrides: Any) -> dict:
    return {"carryForward": True, "expireFrequency": "yearly", **overrides}


def _make_carrier(
    category: LeaveCategory | str = LeaveCategory.accrued,
    *,
    code: str = "CL",
    name: Optional[str] = None,
    **overrides: Any,
) -> dict:
    """A valid creation payload (camelCase, as the UI sends it) for *category*."""
    category = LeaveCategory(category)
    data: dict[str, Any] = {
        "name": name or f"{category.value.title()} Leave",
        "code": code,
        "category": category.value,
        "tagline": "",
        "description": "",
        "leaveProperties": {"allowedTypes": ["fullDay", "partialDay"]},
    }
    if category in (LeaveCategory.accrued, LeaveCategory.monetization):
        data["creditPolicy"] = _credit_policy()
        data["expirePolicy"] = _expire_policy()
    if category == LeaveCategory.monetization:
        data["monetizationPolicy"] = {"encashableCount": "5", "encashableLimit": "10"}
    data.update(overrides)
    return data


def _make_config(
    category: LeaveCategory | str = LeaveCategory.accrued,
    *,
    scope_id: Optional[str] = "acme",
    **overrides: Any,
) -> LeaveConfiguration:
    """Run ``rules.create`` on a valid carrier and return the configuration."""
    result = rules.create(
        _make_carrier(category, **overrides), scope_id=scope_id, now=NOW,
    )
    assert isinstance(result, LeaveConfiguration), result
    return result


def days(value: str | int) -> Decimal:
    return Decimal(str(value))
