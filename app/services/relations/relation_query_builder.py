"""Relation Query Builder.

Builds the fan-out query that lists every active relation leaving a source
object. One SELECT branch is built per registered entity type: an inner
join from the edge to its target object (restricted to that entity's
object type), the label joins, and a left join to the entity's detail
table. A fallback branch covers targets whose type is not registered.
Branches are combined with UNION ALL so no row is collapsed.

Every branch selects the same columns in the same order. Entity columns
come from the full definition catalog; columns an entity does not own
are typed NULL placeholders. The layout therefore does not depend on
which entity types happen to be registered.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import (
    ColumnElement,
    FromClause,
    MetaData,
    Select,
    String,
    Text,
    and_,
    cast,
    func,
    literal,
    null,
    select,
    union_all,
)

from app.core.database import Base
from app.core.exceptions import ConfigurationError, ValidationError
from app.services.registry.entity_definitions import EntityDefinition
from app.services.registry.entity_registry import EntityConfig, EntityTypeRegistry
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Columns shared by every branch, in output order
COMMON_COLUMNS: tuple[str, ...] = (
    "relation_id",
    "object_from_id",
    "object_to_id",
    "object_relation_type_id",
    "relation_note",
    "relation_is_active",
    "relation_created_at",
    "relation_updated_at",
    "relation_created_by",
    "from_object_type_id",
    "from_object_type_code",
    "from_object_type_name",
    "related_object_id",
    "object_type_id",
    "object_type_code",
    "object_type_name",
    "object_status_id",
    "object_status_code",
    "object_status_name",
    "relation_type_code",
    "relation_type_name",
    "related_entity_type",
)

DISPLAY_NAME_COLUMN = "related_object_display_name"


@dataclass(frozen=True)
class EntityColumn:
    """One entity-owned output column of the relations query."""

    definition: EntityDefinition
    label: str
    source_column: Optional[str] = None
    label_alias: Optional[str] = None


class RelationQueryBuilder:
    """Builds the UNION ALL relations query for a source object."""

    def __init__(self, registry: EntityTypeRegistry, metadata: Optional[MetaData] = None):
        if metadata is None:
            import app.database.models  # noqa: F401

            metadata = Base.metadata

        self.registry = registry
        self.metadata = metadata
        self._tables = metadata.tables
        self._entity_columns = self._layout_entity_columns()
        self._column_names = (
            list(COMMON_COLUMNS) + [column.label for column in self._entity_columns] + [DISPLAY_NAME_COLUMN]
        )

        duplicates = sorted({name for name in self._column_names if self._column_names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Relations query layout has colliding column names {duplicates}",
                details={"columns": duplicates},
            )

    def column_names(self) -> list[str]:
        """Output column names of the relations query, in order."""
        return list(self._column_names)

    def entity_columns(self) -> list[EntityColumn]:
        return list(self._entity_columns)

    def build_relations_query(
        self,
        object_from_id: int,
        relation_type_id: Optional[int] = None,
        language_id: int = 1,
        order_by: str = "relation_created_at",
        descending: bool = True,
    ) -> Select:
        """Build the relations query for one source object.

        Args:
            object_from_id: Source object id
            relation_type_id: Optional relation type filter; an id that does
                not exist simply matches nothing
            language_id: Language used for label joins
            order_by: Output column to sort on
            descending: Sort direction; newest first by default

        Returns:
            Select: Parameterized statement ready for execution

        Raises:
            ConfigurationError: If the registry has no entity types
            ValidationError: If an argument is malformed
        """
        if self.registry.is_empty:
            raise ConfigurationError("Entity type registry is empty; cannot build relations query")

        _require_positive_int("object_from_id", object_from_id)
        if relation_type_id is not None:
            _require_positive_int("object_relation_type_id", relation_type_id)
        _require_positive_int("language_id", language_id)

        if order_by not in self._column_names:
            raise ValidationError(
                f"Cannot order relations by unknown column '{order_by}'",
                details={"order_by": order_by},
            )

        branches = [
            self._build_branch(config, object_from_id, relation_type_id, language_id)
            for config in self.registry
        ]
        branches.append(self._build_branch(None, object_from_id, relation_type_id, language_id))

        combined = union_all(*branches).subquery("relations")
        primary = combined.c[order_by]
        tie_break = combined.c.relation_id
        if descending:
            ordering = (primary.desc(), tie_break.desc())
        else:
            ordering = (primary.asc(), tie_break.asc())

        LOGGER.debug(
            "Built relations query",
            extra={
                "object_from_id": object_from_id,
                "relation_type_id": relation_type_id,
                "branches": len(branches),
            },
        )
        return select(combined).order_by(*ordering)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _layout_entity_columns(self) -> list[EntityColumn]:
        columns: list[EntityColumn] = []
        for definition in self.registry.catalog:
            for column in definition.select_columns:
                columns.append(
                    EntityColumn(definition, definition.column_label(column), source_column=column)
                )
            for join in definition.translation_columns:
                columns.append(
                    EntityColumn(definition, definition.translation_label(join), label_alias=join.alias)
                )
        return columns

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _build_branch(
        self,
        config: Optional[EntityConfig],
        object_from_id: int,
        relation_type_id: Optional[int],
        language_id: int,
    ) -> Select:
        tables = self._tables
        translations = tables["translations"]

        or_rel = tables["object_relations"].alias("or_rel")
        o_to = tables["objects"].alias("o_to")
        o_from = tables["objects"].alias("o_from")
        ot = tables["object_types"].alias("ot")
        ot_from = tables["object_types"].alias("ot_from")
        os_ = tables["object_statuses"].alias("os")
        ort = tables["object_relation_types"].alias("ort")
        ot_name = translations.alias("ot_name")
        ot_from_name = translations.alias("ot_from_name")
        os_name = translations.alias("os_name")
        ort_name = translations.alias("ort_name")

        if config is not None:
            type_match = o_to.c.object_type_id == config.object_type_id
        else:
            type_match = o_to.c.object_type_id.not_in(self.registry.object_type_ids)

        from_clause: FromClause = (
            or_rel.join(o_to, and_(o_to.c.id == or_rel.c.object_to_id, type_match))
            .join(ot, ot.c.id == o_to.c.object_type_id)
            .outerjoin(ot_name, _label_on(ot_name, ot.c.code, language_id))
            .outerjoin(os_, os_.c.id == o_to.c.object_status_id)
            .outerjoin(os_name, _label_on(os_name, os_.c.code, language_id))
            .join(ort, ort.c.id == or_rel.c.object_relation_type_id)
            .outerjoin(ort_name, _label_on(ort_name, ort.c.code, language_id))
            .outerjoin(o_from, o_from.c.id == or_rel.c.object_from_id)
            .outerjoin(ot_from, ot_from.c.id == o_from.c.object_type_id)
            .outerjoin(ot_from_name, _label_on(ot_from_name, ot_from.c.code, language_id))
        )

        entity = None
        label_texts: dict[str, ColumnElement[Any]] = {}
        if config is not None:
            entity = tables[config.table_name].alias(config.alias)
            from_clause = from_clause.outerjoin(entity, entity.c.id == o_to.c.id)
            for join in config.translation_columns:
                if join.is_direct:
                    label = translations.alias(join.alias)
                    from_clause = from_clause.outerjoin(
                        label, _label_on(label, entity.c[join.code_column], language_id)
                    )
                    label_texts[join.alias] = label.c.text
                else:
                    lookup = tables[join.lookup_table].alias(join.alias)
                    label = translations.alias(f"{join.alias}_t")
                    from_clause = from_clause.outerjoin(
                        lookup, lookup.c.id == entity.c[join.code_column]
                    ).outerjoin(label, _label_on(label, lookup.c[join.code_field], language_id))
                    label_texts[join.alias] = func.coalesce(label.c.text, lookup.c[join.code_field])

        common = [
            or_rel.c.id.label("relation_id"),
            or_rel.c.object_from_id,
            or_rel.c.object_to_id,
            or_rel.c.object_relation_type_id,
            or_rel.c.note.label("relation_note"),
            or_rel.c.is_active.label("relation_is_active"),
            or_rel.c.created_at.label("relation_created_at"),
            or_rel.c.updated_at.label("relation_updated_at"),
            or_rel.c.created_by.label("relation_created_by"),
            o_from.c.object_type_id.label("from_object_type_id"),
            ot_from.c.code.label("from_object_type_code"),
            func.coalesce(ot_from_name.c.text, ot_from.c.code).label("from_object_type_name"),
            o_to.c.id.label("related_object_id"),
            o_to.c.object_type_id,
            ot.c.code.label("object_type_code"),
            func.coalesce(ot_name.c.text, ot.c.code).label("object_type_name"),
            o_to.c.object_status_id,
            os_.c.code.label("object_status_code"),
            func.coalesce(os_name.c.text, os_.c.code).label("object_status_name"),
            ort.c.code.label("relation_type_code"),
            func.coalesce(ort_name.c.text, ort.c.code).label("relation_type_name"),
            (literal(config.code, String) if config is not None else cast(null(), String)).label(
                "related_entity_type"
            ),
        ]

        entity_columns = [
            self._entity_column(column, config, entity, label_texts) for column in self._entity_columns
        ]

        display_name = self._display_name(config, entity, label_texts, o_to).label(DISPLAY_NAME_COLUMN)

        where = [or_rel.c.object_from_id == object_from_id, or_rel.c.is_active.is_(True)]
        if relation_type_id is not None:
            where.append(or_rel.c.object_relation_type_id == relation_type_id)

        return select(*common, *entity_columns, display_name).select_from(from_clause).where(*where)

    def _entity_column(
        self,
        column: EntityColumn,
        config: Optional[EntityConfig],
        entity: Optional[FromClause],
        label_texts: dict[str, ColumnElement[Any]],
    ) -> ColumnElement[Any]:
        owned = config is not None and config.definition is column.definition
        if column.source_column is not None:
            if owned:
                return entity.c[column.source_column].label(column.label)
            source_type = self._tables[column.definition.table_name].c[column.source_column].type
            return cast(null(), source_type).label(column.label)

        if owned:
            return cast(label_texts[column.label_alias], Text).label(column.label)
        return cast(null(), Text).label(column.label)

    def _display_name(
        self,
        config: Optional[EntityConfig],
        entity: Optional[FromClause],
        label_texts: dict[str, ColumnElement[Any]],
        o_to: FromClause,
    ) -> ColumnElement[Any]:
        fallback = literal("Object #", String) + cast(o_to.c.id, String)
        if config is None:
            return fallback

        display = config.display_name
        candidates: list[ColumnElement[Any]] = []
        if display.translation_alias is not None:
            candidates.append(cast(label_texts[display.translation_alias], String))

        if display.columns:
            joined: Optional[ColumnElement[Any]] = None
            for column in display.columns:
                piece = func.coalesce(cast(entity.c[column], String), literal("", String), type_=String)
                joined = piece if joined is None else joined + literal(display.separator, String) + piece
            # Blank names fall through to the next candidate
            name = func.nullif(func.trim(joined, type_=String), literal("", String), type_=String)
            if display.prefix:
                name = literal(display.prefix, String) + name
            candidates.append(name)

        candidates.append(fallback)
        return func.coalesce(*candidates, type_=String)


def _label_on(label: FromClause, code: ColumnElement[Any], language_id: int) -> ColumnElement[bool]:
    return and_(label.c.code == code, label.c.language_id == language_id)


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"'{name}' must be a positive integer",
            details={"field": name, "value": value},
        )
