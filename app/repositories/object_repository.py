from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Object, ObjectType
from app.repositories.base_repository import BaseRepository


class ObjectRepository(BaseRepository[Object]):
    """Repository for base object identity rows."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Object)


class ObjectTypeRepository(BaseRepository[ObjectType]):
    """Repository for object type descriptors."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ObjectType)

    async def get_active(self) -> Sequence[ObjectType]:
        """Get all active object types ordered by id."""
        query = select(ObjectType).where(ObjectType.is_active.is_(True)).order_by(ObjectType.id)
        result = await self.session.execute(query)
        return result.scalars().all()
