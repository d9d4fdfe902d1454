"""Relation listing and single-edge maintenance."""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import RelationNotFoundError, ValidationError
from app.database.models import ObjectRelation
from app.repositories.object_relation_repository import (
    ObjectRelationRepository,
    ObjectRelationTypeRepository,
)
from app.repositories.object_repository import ObjectRepository
from app.schemas.relations import RelationRow
from app.services.registry.entity_registry import EntityTypeRegistry
from app.services.relations.relation_query_builder import (
    DISPLAY_NAME_COLUMN,
    RelationQueryBuilder,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

MAX_PER_PAGE = 100


class RelationService:
    """Lists the relations of an object and edits individual edges.

    Uniqueness and mirror completeness are not enforced on write; the data
    quality scanner reports violations after the fact.
    """

    def __init__(
        self,
        session: AsyncSession,
        registry: EntityTypeRegistry,
        default_language_id: Optional[int] = None,
    ):
        self.session = session
        self.registry = registry
        self.default_language_id = default_language_id or settings.relations.default_language_id
        self.query_builder = RelationQueryBuilder(registry)
        self.relation_repository = ObjectRelationRepository(session)
        self.relation_type_repository = ObjectRelationTypeRepository(session)
        self.object_repository = ObjectRepository(session)

        # label -> (entity code, unprefixed attribute name)
        self._attribute_keys: Dict[str, tuple[str, str]] = {}
        for column in self.query_builder.entity_columns():
            prefix = f"{column.definition.alias}_"
            self._attribute_keys[column.label] = (column.definition.code, column.label[len(prefix):])

    async def list_relations(
        self,
        object_from_id: int,
        relation_type_id: Optional[int] = None,
        language_id: Optional[int] = None,
        order_by: str = "relation_created_at",
        descending: bool = True,
    ) -> List[RelationRow]:
        """List every active relation leaving ``object_from_id``.

        Args:
            object_from_id: Source object ID
            relation_type_id: Optional relation type filter
            language_id: Language for labels; the configured default when omitted
            order_by: Output column to sort on
            descending: Sort direction

        Returns:
            List[RelationRow]: One row per active edge
        """
        query = self.query_builder.build_relations_query(
            object_from_id,
            relation_type_id=relation_type_id,
            language_id=language_id or self.default_language_id,
            order_by=order_by,
            descending=descending,
        )

        try:
            result = await self.session.execute(query)
            rows = result.mappings().all()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Failed to list relations: {str(e)}",
                exc_info=True,
                extra={"object_from_id": object_from_id},
            )
            raise

        LOGGER.info(
            "Listed relations",
            extra={"object_from_id": object_from_id, "count": len(rows)},
        )
        return [self._to_relation_row(row) for row in rows]

    def _to_relation_row(self, row: Mapping[str, Any]) -> RelationRow:
        entity_code = row["related_entity_type"]
        attributes: Dict[str, Any] = {}
        if entity_code is not None:
            for label, (code, key) in self._attribute_keys.items():
                if code == entity_code:
                    attributes[key] = row[label]

        return RelationRow(
            relation_id=row["relation_id"],
            object_from_id=row["object_from_id"],
            object_to_id=row["object_to_id"],
            object_relation_type_id=row["object_relation_type_id"],
            relation_type_code=row["relation_type_code"],
            relation_type_name=row["relation_type_name"],
            note=row["relation_note"],
            is_active=row["relation_is_active"],
            created_at=row["relation_created_at"],
            updated_at=row["relation_updated_at"],
            created_by=row["relation_created_by"],
            from_object_type_id=row["from_object_type_id"],
            from_object_type_code=row["from_object_type_code"],
            from_object_type_name=row["from_object_type_name"],
            related_object_id=row["related_object_id"],
            object_type_id=row["object_type_id"],
            object_type_code=row["object_type_code"],
            object_type_name=row["object_type_name"],
            object_status_id=row["object_status_id"],
            object_status_code=row["object_status_code"],
            object_status_name=row["object_status_name"],
            related_entity_type=entity_code,
            related_object_display_name=row[DISPLAY_NAME_COLUMN],
            attributes=attributes,
        )

    async def get_relation(self, relation_id: int) -> ObjectRelation:
        """Fetch one edge by ID, active or not.

        Raises:
            RelationNotFoundError: If the edge does not exist
        """
        relation = await self.relation_repository.get_by_id(relation_id)
        if relation is None:
            raise RelationNotFoundError(
                f"Relation {relation_id} not found",
                details={"relation_ids": [relation_id]},
            )
        return relation

    async def list_all(
        self,
        object_from_id: Optional[int] = None,
        object_to_id: Optional[int] = None,
        object_relation_type_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[ObjectRelation], int]:
        """List raw edges across all objects, one page at a time.

        Filters left as None are not applied, so inactive edges are included
        unless ``is_active`` is given.

        Returns:
            Tuple of the edges on the requested page and the total match count

        Raises:
            ValidationError: If ``page`` or ``per_page`` is out of range
        """
        if page < 1:
            raise ValidationError("page must be at least 1", details={"page": page})
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValidationError(
                f"per_page must be between 1 and {MAX_PER_PAGE}",
                details={"per_page": per_page},
            )

        relations, total = await self.relation_repository.list_filtered(
            object_from_id=object_from_id,
            object_to_id=object_to_id,
            object_relation_type_id=object_relation_type_id,
            is_active=is_active,
            offset=(page - 1) * per_page,
            limit=per_page,
        )
        LOGGER.info(
            "Listed relation edges",
            extra={"page": page, "per_page": per_page, "count": len(relations), "total": total},
        )
        return relations, total

    async def create_relation(
        self,
        object_from_id: int,
        object_to_id: int,
        object_relation_type_id: int,
        note: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> ObjectRelation:
        """Create an edge between two existing objects.

        Raises:
            ValidationError: If an endpoint or the relation type does not exist
        """
        objects = await self.object_repository.get_by_ids([object_from_id, object_to_id])
        missing = [object_id for object_id in (object_from_id, object_to_id) if object_id not in objects]
        if missing:
            raise ValidationError(
                f"Objects {missing} do not exist",
                details={"object_ids": missing},
            )

        relation_type = await self.relation_type_repository.get_by_id(object_relation_type_id)
        if relation_type is None:
            raise ValidationError(
                f"Relation type {object_relation_type_id} does not exist",
                details={"object_relation_type_id": object_relation_type_id},
            )

        relation = await self.relation_repository.create(
            object_from_id=object_from_id,
            object_to_id=object_to_id,
            object_relation_type_id=object_relation_type_id,
            note=note,
            created_by=created_by,
            is_active=True,
        )
        LOGGER.info(
            "Relation created",
            extra={
                "relation_id": relation.id,
                "object_from_id": object_from_id,
                "object_to_id": object_to_id,
                "object_relation_type_id": object_relation_type_id,
            },
        )
        return relation

    async def update_note(self, relation_id: int, note: Optional[str]) -> ObjectRelation:
        """Replace the note of an edge.

        Raises:
            RelationNotFoundError: If the edge does not exist
        """
        relation = await self.relation_repository.update(relation_id, note=note)
        if relation is None:
            raise RelationNotFoundError(
                f"Relation {relation_id} not found",
                details={"relation_ids": [relation_id]},
            )
        return relation

    async def delete_relation(self, relation_id: int) -> bool:
        """Soft-delete one edge. Deleting an inactive edge is a no-op.

        Returns:
            bool: True when the edge changed state

        Raises:
            RelationNotFoundError: If the edge does not exist
        """
        missing = await self.relation_repository.find_missing_ids([relation_id])
        if missing:
            raise RelationNotFoundError(
                f"Relation {relation_id} not found",
                details={"relation_ids": missing},
            )

        try:
            affected = await self.relation_repository.soft_delete_many([relation_id])
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        LOGGER.info("Relation soft-deleted", extra={"relation_id": relation_id, "changed": bool(affected)})
        return affected > 0
