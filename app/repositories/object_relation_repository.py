from typing import List, Optional, Sequence, Tuple

from sqlalchemy import Row, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.database.models import Object, ObjectRelation, ObjectRelationType
from app.repositories.base_repository import BaseRepository


class ObjectRelationRepository(BaseRepository[ObjectRelation]):
    """Repository for relation edges.

    The bulk methods only flush; the caller owns the transaction so a whole
    batch commits or rolls back together.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, ObjectRelation)

    async def find_missing_ids(self, ids: Sequence[int]) -> list[int]:
        """Return the IDs from ``ids`` that have no relation row."""
        if not ids:
            return []
        query = select(ObjectRelation.id).where(ObjectRelation.id.in_(ids))
        result = await self.session.execute(query)
        existing = set(result.scalars().all())
        return sorted(set(ids) - existing)

    async def list_filtered(
        self,
        object_from_id: Optional[int] = None,
        object_to_id: Optional[int] = None,
        object_relation_type_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[ObjectRelation], int]:
        """Fetch one page of edges matching every given filter.

        Returns:
            The page of edges ordered by ID and the total number of matches
        """
        conditions = []
        if object_from_id is not None:
            conditions.append(ObjectRelation.object_from_id == object_from_id)
        if object_to_id is not None:
            conditions.append(ObjectRelation.object_to_id == object_to_id)
        if object_relation_type_id is not None:
            conditions.append(ObjectRelation.object_relation_type_id == object_relation_type_id)
        if is_active is not None:
            conditions.append(ObjectRelation.is_active.is_(is_active))

        count_query = select(func.count()).select_from(ObjectRelation).where(*conditions)
        page_query = (
            select(ObjectRelation)
            .where(*conditions)
            .order_by(ObjectRelation.id)
            .offset(offset)
            .limit(limit)
        )
        total = (await self.session.execute(count_query)).scalar_one()
        result = await self.session.execute(page_query)
        return list(result.scalars().all()), total

    async def get_with_endpoint_types(self, ids: Sequence[int]) -> Sequence[Row]:
        """Fetch edges together with the object types of both endpoints."""
        o_from = aliased(Object, name="o_from")
        o_to = aliased(Object, name="o_to")
        query = (
            select(
                ObjectRelation.id,
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
                ObjectRelation.is_active,
                o_from.object_type_id.label("from_object_type_id"),
                o_to.object_type_id.label("to_object_type_id"),
            )
            .outerjoin(o_from, o_from.id == ObjectRelation.object_from_id)
            .outerjoin(o_to, o_to.id == ObjectRelation.object_to_id)
            .where(ObjectRelation.id.in_(ids))
            .order_by(ObjectRelation.id)
        )
        result = await self.session.execute(query)
        return result.all()

    async def soft_delete_many(self, ids: Sequence[int]) -> int:
        """Mark active edges inactive. Already inactive edges are left untouched.

        Returns:
            Number of edges that changed state
        """
        try:
            stmt = (
                update(ObjectRelation)
                .where(ObjectRelation.id.in_(ids), ObjectRelation.is_active.is_(True))
                .values(is_active=False, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            self.logger.error(f"Error soft-deleting relations: {str(e)}", exc_info=True, extra={"ids": list(ids)})
            raise

    async def reassign_target(self, ids: Sequence[int], new_object_to_id: int) -> int:
        """Point ``object_to_id`` of the given edges at a new object."""
        try:
            stmt = (
                update(ObjectRelation)
                .where(ObjectRelation.id.in_(ids))
                .values(object_to_id=new_object_to_id, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            self.logger.error(f"Error reassigning relations: {str(e)}", exc_info=True, extra={"ids": list(ids)})
            raise

    async def update_relation_type(self, ids: Sequence[int], new_relation_type_id: int) -> int:
        """Retype the given edges."""
        try:
            stmt = (
                update(ObjectRelation)
                .where(ObjectRelation.id.in_(ids))
                .values(object_relation_type_id=new_relation_type_id, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            await self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            self.logger.error(f"Error retyping relations: {str(e)}", exc_info=True, extra={"ids": list(ids)})
            raise


class ObjectRelationTypeRepository(BaseRepository[ObjectRelationType]):
    """Repository for relation type definitions."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ObjectRelationType)
