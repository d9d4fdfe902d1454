"""Entity Type Registry.

Maps an ``object_type_id`` to the :class:`EntityConfig` that tells the
relation engine which table, columns, label joins and display-name
expression describe that entity type. A registry is immutable once
built; refreshing replaces the whole object.
"""

import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Sequence

from sqlalchemy import MetaData

from app.core.database import Base
from app.core.exceptions import ConfigurationError
from app.services.registry.entity_definitions import (
    ENTITY_DEFINITIONS,
    DisplayName,
    EntityDefinition,
    TranslationJoin,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

TRANSLATIONS_TABLE = "translations"

# Aliases used by the common part of every relations query branch
RESERVED_ALIASES = frozenset(
    {"or_rel", "o_to", "o_from", "ot", "ot_from", "os", "ort", "ot_name", "ot_from_name", "os_name", "ort_name"}
)


@dataclass(frozen=True)
class EntityConfig:
    """An entity definition bound to its ``object_types.id``."""

    definition: EntityDefinition
    object_type_id: int

    @property
    def code(self) -> str:
        return self.definition.code

    @property
    def table_name(self) -> str:
        return self.definition.table_name

    @property
    def alias(self) -> str:
        return self.definition.alias

    @property
    def select_columns(self) -> tuple[str, ...]:
        return self.definition.select_columns

    @property
    def translation_columns(self) -> tuple[TranslationJoin, ...]:
        return self.definition.translation_columns

    @property
    def display_name(self) -> DisplayName:
        return self.definition.display_name


def validate_catalog(catalog: Sequence[EntityDefinition], metadata: MetaData) -> None:
    """Check every definition against the mapped tables.

    Raises:
        ConfigurationError: If a table, column, lookup or alias is unknown
            or collides with another definition
    """
    if TRANSLATIONS_TABLE not in metadata.tables:
        raise ConfigurationError(f"Label table '{TRANSLATIONS_TABLE}' is not mapped")

    seen_codes: set[str] = set()
    seen_aliases: set[str] = set(RESERVED_ALIASES)

    for definition in catalog:
        if definition.code in seen_codes:
            raise ConfigurationError(
                f"Entity code '{definition.code}' is defined more than once",
                details={"code": definition.code},
            )
        seen_codes.add(definition.code)

        table = metadata.tables.get(definition.table_name)
        if table is None:
            raise ConfigurationError(
                f"Entity '{definition.code}' references unknown table '{definition.table_name}'",
                details={"code": definition.code, "table": definition.table_name},
            )

        aliases = [definition.alias]
        for join in definition.translation_columns:
            aliases.append(join.alias)
            if not join.is_direct:
                aliases.append(f"{join.alias}_t")
        for alias in aliases:
            if alias in seen_aliases:
                raise ConfigurationError(
                    f"Alias '{alias}' of entity '{definition.code}' is already in use",
                    details={"code": definition.code, "alias": alias},
                )
            seen_aliases.add(alias)

        # Detail rows share the primary key of objects
        referenced = {"id"} | set(definition.select_columns) | set(definition.display_name.columns)
        referenced |= {join.code_column for join in definition.translation_columns}
        missing = sorted(column for column in referenced if column not in table.c)
        if missing:
            raise ConfigurationError(
                f"Entity '{definition.code}' references unknown columns {missing} on '{table.name}'",
                details={"code": definition.code, "columns": missing},
            )

        join_aliases = {join.alias for join in definition.translation_columns}
        display_alias = definition.display_name.translation_alias
        if display_alias is not None and display_alias not in join_aliases:
            raise ConfigurationError(
                f"Display name of '{definition.code}' uses unknown label join '{display_alias}'",
                details={"code": definition.code, "alias": display_alias},
            )

        for join in definition.translation_columns:
            if join.is_direct:
                continue
            lookup = metadata.tables.get(join.lookup_table)
            if lookup is None or join.code_field not in lookup.c or "id" not in lookup.c:
                raise ConfigurationError(
                    f"Label join '{join.alias}' of '{definition.code}' references "
                    f"unknown lookup '{join.lookup_table}.{join.code_field}'",
                    details={"code": definition.code, "lookup_table": join.lookup_table},
                )


class EntityTypeRegistry:
    """Immutable lookup of entity configs by object type id and code."""

    def __init__(
        self,
        configs: Iterable[EntityConfig],
        catalog: Sequence[EntityDefinition] = ENTITY_DEFINITIONS,
        metadata: Optional[MetaData] = None,
    ):
        """Build and validate a registry.

        Args:
            configs: Entity configs bound to their object type ids
            catalog: Full set of known entity definitions; fixes the
                column layout of the relations query
            metadata: Table metadata to validate against

        Raises:
            ConfigurationError: If the catalog is invalid, a config is not
                part of the catalog, or two configs share a type id or code
        """
        if metadata is None:
            # Register every mapped table on Base.metadata
            import app.database.models  # noqa: F401

            metadata = Base.metadata

        self._catalog = tuple(catalog)
        validate_catalog(self._catalog, metadata)

        order = {definition.code: index for index, definition in enumerate(self._catalog)}
        by_type_id: dict[int, EntityConfig] = {}
        by_code: dict[str, EntityConfig] = {}

        for config in configs:
            if order.get(config.code) is None or self._catalog[order[config.code]] != config.definition:
                raise ConfigurationError(
                    f"Entity '{config.code}' is not part of the registry catalog",
                    details={"code": config.code},
                )
            if config.object_type_id in by_type_id:
                raise ConfigurationError(
                    f"Object type {config.object_type_id} is bound to both "
                    f"'{by_type_id[config.object_type_id].code}' and '{config.code}'",
                    details={"object_type_id": config.object_type_id},
                )
            if config.code in by_code:
                raise ConfigurationError(
                    f"Entity '{config.code}' is bound more than once",
                    details={"code": config.code},
                )
            by_type_id[config.object_type_id] = config
            by_code[config.code] = config

        ordered = sorted(by_code.values(), key=lambda config: order[config.code])
        self._configs: tuple[EntityConfig, ...] = tuple(ordered)
        self._by_type_id = MappingProxyType(by_type_id)
        self._by_code = MappingProxyType(by_code)
        self.loaded_at = time.monotonic()

    @classmethod
    def from_type_ids(
        cls,
        type_ids: dict[str, int],
        catalog: Sequence[EntityDefinition] = ENTITY_DEFINITIONS,
    ) -> "EntityTypeRegistry":
        """Build a registry from a ``{code: object_type_id}`` mapping."""
        definitions = {definition.code: definition for definition in catalog}
        unknown = sorted(code for code in type_ids if code not in definitions)
        if unknown:
            raise ConfigurationError(f"No entity definition for codes {unknown}", details={"codes": unknown})
        return cls(
            [EntityConfig(definitions[code], type_id) for code, type_id in type_ids.items()],
            catalog=catalog,
        )

    def resolve(self, object_type_id: Optional[int]) -> Optional[EntityConfig]:
        """Return the config for an object type, or None when unregistered."""
        if object_type_id is None:
            return None
        return self._by_type_id.get(object_type_id)

    def get_by_code(self, code: str) -> Optional[EntityConfig]:
        return self._by_code.get(code)

    def is_registered(self, object_type_id: Optional[int]) -> bool:
        return object_type_id is not None and object_type_id in self._by_type_id

    @property
    def object_type_ids(self) -> tuple[int, ...]:
        return tuple(config.object_type_id for config in self._configs)

    @property
    def catalog(self) -> tuple[EntityDefinition, ...]:
        return self._catalog

    @property
    def is_empty(self) -> bool:
        return not self._configs

    @staticmethod
    def display_fallback(object_id: int) -> str:
        return f"Object #{object_id}"

    def __iter__(self) -> Iterator[EntityConfig]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        bound = ", ".join(f"{c.code}={c.object_type_id}" for c in self._configs)
        return f"EntityTypeRegistry({bound})"
