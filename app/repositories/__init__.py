"""Repository layer modules."""

from app.repositories.object_relation_repository import (
    ObjectRelationRepository,
    ObjectRelationTypeRepository,
)
from app.repositories.object_repository import ObjectRepository, ObjectTypeRepository

__all__ = [
    "ObjectRelationRepository",
    "ObjectRelationTypeRepository",
    "ObjectRepository",
    "ObjectTypeRepository",
]
