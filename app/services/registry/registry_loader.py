"""Loading and caching of the Entity Type Registry.

The active rows of ``object_types`` are the source of truth: each active
type whose code has an entity definition becomes an :class:`EntityConfig`.
The cache hands out one immutable registry and replaces it wholesale on
refresh, so concurrent requests never see a half-built registry.
"""

import asyncio
import time
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.repositories.object_repository import ObjectTypeRepository
from app.services.registry.entity_definitions import ENTITY_DEFINITIONS, EntityDefinition
from app.services.registry.entity_registry import EntityConfig, EntityTypeRegistry
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class EntityRegistryLoader:
    """Builds a registry from the active object type descriptors."""

    def __init__(self, catalog: Sequence[EntityDefinition] = ENTITY_DEFINITIONS):
        self.catalog = tuple(catalog)
        self._definitions = {definition.code: definition for definition in self.catalog}

    async def load(self, session: AsyncSession) -> EntityTypeRegistry:
        """Read active object types and bind matching definitions.

        Args:
            session: Database session used for the read

        Returns:
            EntityTypeRegistry: Freshly built registry
        """
        object_types = await ObjectTypeRepository(session).get_active()

        configs: list[EntityConfig] = []
        skipped: list[str] = []
        for object_type in object_types:
            definition = self._definitions.get(object_type.code)
            if definition is None:
                skipped.append(object_type.code)
                continue
            configs.append(EntityConfig(definition, object_type.id))

        if skipped:
            LOGGER.warning(
                "Active object types without an entity definition",
                extra={"codes": skipped},
            )

        registry = EntityTypeRegistry(configs, catalog=self.catalog)
        if registry.is_empty:
            LOGGER.warning("Entity type registry loaded with no entity types")
        else:
            LOGGER.info(f"Entity type registry loaded: {registry!r}")
        return registry


class EntityRegistryCache:
    """Process-wide holder for the current registry.

    Loads lazily on first use. With a positive TTL the registry is reloaded
    once it is older than ``ttl_seconds``; with 0 it lives until
    :meth:`invalidate` is called by the host application.
    """

    def __init__(
        self,
        loader: Optional[EntityRegistryLoader] = None,
        ttl_seconds: float = 0,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        self.loader = loader or EntityRegistryLoader()
        self.ttl_seconds = ttl_seconds
        self._session_factory = session_factory
        self._registry: Optional[EntityTypeRegistry] = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> Optional[EntityTypeRegistry]:
        return self._registry

    def _is_stale(self, registry: Optional[EntityTypeRegistry]) -> bool:
        if registry is None:
            return True
        if self.ttl_seconds <= 0:
            return False
        return time.monotonic() - registry.loaded_at >= self.ttl_seconds

    async def get(self, session: Optional[AsyncSession] = None) -> EntityTypeRegistry:
        """Return the cached registry, loading it when missing or expired.

        Args:
            session: Optional session to load with; a new one is opened from
                the session factory otherwise
        """
        registry = self._registry
        if not self._is_stale(registry):
            return registry

        async with self._lock:
            # Another request may have reloaded while we waited
            if not self._is_stale(self._registry):
                return self._registry
            self._registry = await self._load(session)
            return self._registry

    async def refresh(self, session: Optional[AsyncSession] = None) -> EntityTypeRegistry:
        """Force a reload and swap in the new registry."""
        async with self._lock:
            self._registry = await self._load(session)
            return self._registry

    def invalidate(self) -> None:
        """Drop the cached registry; the next :meth:`get` reloads it."""
        self._registry = None
        LOGGER.info("Entity type registry invalidated")

    async def _load(self, session: Optional[AsyncSession]) -> EntityTypeRegistry:
        if session is not None:
            return await self.loader.load(session)

        session_factory = self._session_factory
        if session_factory is None:
            from app.core.database import async_session_maker

            session_factory = async_session_maker

        async with session_factory() as own_session:
            return await self.loader.load(own_session)


registry_cache = EntityRegistryCache(ttl_seconds=settings.relations.registry_ttl_seconds)
