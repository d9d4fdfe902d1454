"""Fixtures for exercising the HTTP API against the in-memory store."""

from typing import Any, AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.database import get_async_session
from app.dependencies import get_registry
from app.main import app
from app.services.registry.registry_loader import registry_cache


@pytest_asyncio.fixture
async def api_client(session_factory, registry) -> AsyncGenerator[Any, None]:
    """Async client whose requests use the test store and registry."""

    async def override_session():
        async with session_factory() as session:
            yield session

    async def override_registry():
        return registry

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_registry] = override_registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    registry_cache.invalidate()
