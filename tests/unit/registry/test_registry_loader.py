"""Tests for loading the registry from object types and caching it."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.database.models import ObjectType
from app.services.registry.entity_registry import EntityTypeRegistry
from app.services.registry.registry_loader import EntityRegistryCache, EntityRegistryLoader
from tests.factories import COMPANY_TYPE, PERSON_TYPE, TYPE_IDS, VEHICLE_TYPE


@pytest.mark.asyncio
async def test_loader_binds_active_types_with_definitions(seeded_session):
    registry = await EntityRegistryLoader().load(seeded_session)

    assert {config.code: config.object_type_id for config in registry} == TYPE_IDS
    # vehicle is active but has no entity definition
    assert registry.resolve(VEHICLE_TYPE) is None


@pytest.mark.asyncio
async def test_loader_skips_inactive_types(seeded_session):
    company = await seeded_session.get(ObjectType, COMPANY_TYPE)
    company.is_active = False
    await seeded_session.commit()

    registry = await EntityRegistryLoader().load(seeded_session)

    assert registry.resolve(COMPANY_TYPE) is None
    assert registry.resolve(PERSON_TYPE) is not None


@pytest.mark.asyncio
async def test_loader_with_no_types_returns_empty_registry(session):
    registry = await EntityRegistryLoader().load(session)

    assert registry.is_empty


def _counting_loader() -> AsyncMock:
    loader = AsyncMock(spec=EntityRegistryLoader)
    loader.load.side_effect = lambda session: EntityTypeRegistry.from_type_ids({"person": PERSON_TYPE})
    return loader


@pytest.mark.asyncio
async def test_cache_loads_once(session):
    loader = _counting_loader()
    cache = EntityRegistryCache(loader=loader)

    first = await cache.get(session)
    second = await cache.get(session)

    assert first is second
    assert loader.load.await_count == 1


@pytest.mark.asyncio
async def test_cache_concurrent_first_use_loads_once(session):
    loader = _counting_loader()
    cache = EntityRegistryCache(loader=loader)

    results = await asyncio.gather(*(cache.get(session) for _ in range(5)))

    assert all(result is results[0] for result in results)
    assert loader.load.await_count == 1


@pytest.mark.asyncio
async def test_cache_invalidate_forces_reload(session):
    loader = _counting_loader()
    cache = EntityRegistryCache(loader=loader)

    first = await cache.get(session)
    cache.invalidate()
    assert cache.current is None

    second = await cache.get(session)

    assert second is not first
    assert loader.load.await_count == 2


@pytest.mark.asyncio
async def test_cache_refresh_swaps_registry(session):
    loader = _counting_loader()
    cache = EntityRegistryCache(loader=loader)

    first = await cache.get(session)
    refreshed = await cache.refresh(session)

    assert refreshed is not first
    assert cache.current is refreshed


@pytest.mark.asyncio
async def test_cache_ttl_expiry_reloads(session):
    loader = _counting_loader()
    cache = EntityRegistryCache(loader=loader, ttl_seconds=60)

    first = await cache.get(session)
    # Age the registry past its TTL
    first.loaded_at -= 61

    second = await cache.get(session)

    assert second is not first
    assert loader.load.await_count == 2


@pytest.mark.asyncio
async def test_cache_opens_own_session_when_none_given(seeded_session, session_factory):
    cache = EntityRegistryCache(session_factory=session_factory)

    registry = await cache.get()

    assert registry.resolve(PERSON_TYPE).code == "person"
