"""Entity Type Registry: how each entity type is joined and labelled."""

from app.services.registry.entity_definitions import (
    ENTITY_DEFINITIONS,
    DisplayName,
    EntityDefinition,
    TranslationJoin,
)
from app.services.registry.entity_registry import EntityConfig, EntityTypeRegistry
from app.services.registry.registry_loader import (
    EntityRegistryCache,
    EntityRegistryLoader,
    registry_cache,
)

__all__ = [
    "ENTITY_DEFINITIONS",
    "DisplayName",
    "EntityConfig",
    "EntityDefinition",
    "EntityRegistryCache",
    "EntityRegistryLoader",
    "EntityTypeRegistry",
    "TranslationJoin",
    "registry_cache",
]
