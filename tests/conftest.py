"""Pytest configuration and shared fixtures.

Tests run against an in-memory SQLite store. The environment is set before
any ``app`` module is imported so the module-level engine is SQLite too.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.services.registry.entity_registry import EntityTypeRegistry
from tests.factories import TYPE_IDS, Graph, build_graph, seed_reference_data


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_session(session: AsyncSession) -> AsyncSession:
    """Session over a store holding languages, types, labels and relation types."""
    await seed_reference_data(session)
    return session


@pytest_asyncio.fixture
async def graph(seeded_session: AsyncSession) -> Graph:
    """One object of every seeded type, plus an unregistered vehicle."""
    return await build_graph(seeded_session)


@pytest.fixture
def registry() -> EntityTypeRegistry:
    """Registry with every catalog entity bound to the seeded object types."""
    return EntityTypeRegistry.from_type_ids(TYPE_IDS)
