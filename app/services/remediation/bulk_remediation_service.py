"""Bulk remediation of relation edges.

Every operation validates the whole batch before it mutates anything and
commits once. A missing id, a conformance violation, a store failure or a
cancellation rolls the batch back; there is no partial success. Callers
re-run the relevant scans afterwards.
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    OperationTimeoutError,
    RelationNotFoundError,
    ValidationError,
)
from app.repositories.object_relation_repository import (
    ObjectRelationRepository,
    ObjectRelationTypeRepository,
)
from app.repositories.object_repository import ObjectRepository
from app.schemas.relations import BulkOperationResult
from app.services.registry.entity_registry import EntityTypeRegistry
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BulkRemediationService:
    """All-or-nothing bulk edits of relation edges."""

    def __init__(
        self,
        session: AsyncSession,
        registry: EntityTypeRegistry,
        max_bulk_ids: int = None,
        timeout_seconds: float = None,
    ):
        self.session = session
        self.registry = registry
        self.max_bulk_ids = max_bulk_ids or settings.relations.max_bulk_ids
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.relations.remediation_timeout_seconds
        )
        self.relation_repository = ObjectRelationRepository(session)
        self.relation_type_repository = ObjectRelationTypeRepository(session)
        self.object_repository = ObjectRepository(session)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def bulk_delete(self, relation_ids: Sequence[int]) -> BulkOperationResult:
        """Soft-delete every edge in the batch.

        Edges that are already inactive are left alone and not counted, so
        repeating a call is a no-op.

        Raises:
            ValidationError: If the id list is malformed
            RelationNotFoundError: If any id does not exist
        """
        ids = self._validate_ids(relation_ids)

        async def apply() -> int:
            await self._require_existing(ids)
            return await self.relation_repository.soft_delete_many(ids)

        return await self._run_batch("bulk_delete", ids, apply)

    async def bulk_reassign_target(
        self,
        relation_ids: Sequence[int],
        old_object_to_id: int,
        new_object_to_id: int,
    ) -> BulkOperationResult:
        """Point every edge of the batch from ``old_object_to_id`` to ``new_object_to_id``.

        The new target must be an active object whose type is the registered
        child type of each edge's relation type.

        Raises:
            ValidationError: If the arguments are malformed
            RelationNotFoundError: If any id does not exist
            ConstraintViolationError: If an edge does not point at the old
                target or the new target would not conform
        """
        ids = self._validate_ids(relation_ids)
        _require_positive_int("old_object_to_id", old_object_to_id)
        _require_positive_int("new_object_to_id", new_object_to_id)
        if old_object_to_id == new_object_to_id:
            raise ValidationError(
                "Old and new target objects are the same",
                details={"object_to_id": old_object_to_id},
            )
        self._require_registry()

        async def apply() -> int:
            edges = await self._load_edges(ids)

            wrong_target = [edge.id for edge in edges if edge.object_to_id != old_object_to_id]
            if wrong_target:
                raise ConstraintViolationError(
                    f"Relations {wrong_target} do not point at object {old_object_to_id}",
                    details={"relation_ids": wrong_target, "old_object_to_id": old_object_to_id},
                )

            new_target = await self.object_repository.get_by_id(new_object_to_id)
            if new_target is None or not new_target.is_active:
                raise ConstraintViolationError(
                    f"Object {new_object_to_id} does not exist or is inactive",
                    details={"new_object_to_id": new_object_to_id},
                )

            relation_types = await self.relation_type_repository.get_by_ids(
                sorted({edge.object_relation_type_id for edge in edges})
            )
            nonconforming = []
            for edge in edges:
                relation_type = relation_types.get(edge.object_relation_type_id)
                child_type_id = relation_type.child_object_type_id if relation_type else None
                if not self.registry.is_registered(child_type_id) or new_target.object_type_id != child_type_id:
                    nonconforming.append(edge.id)

            if nonconforming:
                raise ConstraintViolationError(
                    f"Object {new_object_to_id} is not a valid target for relations {nonconforming}",
                    details={
                        "relation_ids": nonconforming,
                        "new_object_to_id": new_object_to_id,
                        "object_type_id": new_target.object_type_id,
                    },
                )

            return await self.relation_repository.reassign_target(ids, new_object_to_id)

        return await self._run_batch("bulk_reassign_target", ids, apply)

    async def bulk_update_relation_type(
        self,
        relation_ids: Sequence[int],
        old_relation_type_id: int,
        new_relation_type_id: int,
    ) -> BulkOperationResult:
        """Retype every edge of the batch from ``old_relation_type_id`` to ``new_relation_type_id``.

        Raises:
            ValidationError: If the arguments are malformed
            RelationNotFoundError: If any id does not exist
            ConstraintViolationError: If the new type is unusable, an edge does
                not have the old type, or an endpoint would not conform
        """
        ids = self._validate_ids(relation_ids)
        _require_positive_int("old_relation_type_id", old_relation_type_id)
        _require_positive_int("new_relation_type_id", new_relation_type_id)
        if old_relation_type_id == new_relation_type_id:
            raise ValidationError(
                "Old and new relation types are the same",
                details={"object_relation_type_id": old_relation_type_id},
            )
        self._require_registry()

        async def apply() -> int:
            new_type = await self.relation_type_repository.get_by_id(new_relation_type_id)
            if new_type is None or not new_type.is_active:
                raise ConstraintViolationError(
                    f"Relation type {new_relation_type_id} does not exist or is inactive",
                    details={"new_relation_type_id": new_relation_type_id},
                )

            parent_type_id = new_type.parent_object_type_id
            child_type_id = new_type.child_object_type_id
            if not (self.registry.is_registered(parent_type_id) and self.registry.is_registered(child_type_id)):
                raise ConstraintViolationError(
                    f"Relation type {new_relation_type_id} has an unregistered endpoint type",
                    details={
                        "new_relation_type_id": new_relation_type_id,
                        "parent_object_type_id": parent_type_id,
                        "child_object_type_id": child_type_id,
                    },
                )

            edges = await self._load_edges(ids)

            wrong_type = [edge.id for edge in edges if edge.object_relation_type_id != old_relation_type_id]
            if wrong_type:
                raise ConstraintViolationError(
                    f"Relations {wrong_type} are not of type {old_relation_type_id}",
                    details={"relation_ids": wrong_type, "old_relation_type_id": old_relation_type_id},
                )

            nonconforming = [
                edge.id
                for edge in edges
                if edge.from_object_type_id != parent_type_id or edge.to_object_type_id != child_type_id
            ]
            if nonconforming:
                raise ConstraintViolationError(
                    f"Relations {nonconforming} do not conform to relation type {new_relation_type_id}",
                    details={
                        "relation_ids": nonconforming,
                        "new_relation_type_id": new_relation_type_id,
                        "parent_object_type_id": parent_type_id,
                        "child_object_type_id": child_type_id,
                    },
                )

            return await self.relation_repository.update_relation_type(ids, new_relation_type_id)

        return await self._run_batch("bulk_update_relation_type", ids, apply)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_ids(self, relation_ids: Iterable[Any]) -> List[int]:
        if relation_ids is None or isinstance(relation_ids, (str, bytes)):
            raise ValidationError("relation_ids must be a list of relation IDs")

        try:
            values = list(relation_ids)
        except TypeError as e:
            raise ValidationError("relation_ids must be a list of relation IDs", original_error=e) from e
        if not values:
            raise ValidationError("relation_ids must not be empty")

        # Type check must precede de-duplication since True == 1
        malformed = [
            value for value in values if isinstance(value, bool) or not isinstance(value, int) or value <= 0
        ]
        if malformed:
            raise ValidationError(
                "relation_ids must be positive integers",
                details={"invalid_ids": [repr(value) for value in malformed]},
            )

        ids = list(dict.fromkeys(values))

        if len(ids) > self.max_bulk_ids:
            raise ValidationError(
                f"At most {self.max_bulk_ids} relations can be changed in one batch",
                details={"requested": len(ids), "max_bulk_ids": self.max_bulk_ids},
            )
        return ids

    def _require_registry(self) -> None:
        if self.registry.is_empty:
            raise ConfigurationError("Entity type registry is empty; cannot check relation types")

    async def _require_existing(self, ids: List[int]) -> None:
        missing = await self.relation_repository.find_missing_ids(ids)
        if missing:
            raise RelationNotFoundError(
                f"Relations {missing} not found",
                details={"relation_ids": missing},
            )

    async def _load_edges(self, ids: List[int]) -> Sequence[Any]:
        edges = await self.relation_repository.get_with_endpoint_types(ids)
        found = {edge.id for edge in edges}
        missing = sorted(set(ids) - found)
        if missing:
            raise RelationNotFoundError(
                f"Relations {missing} not found",
                details={"relation_ids": missing},
            )
        return edges

    async def _run_batch(
        self,
        operation: str,
        ids: List[int],
        apply: Callable[[], Awaitable[int]],
    ) -> BulkOperationResult:
        async def apply_and_commit() -> int:
            affected = await apply()
            await self.session.commit()
            return affected

        try:
            affected = await asyncio.wait_for(apply_and_commit(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Bulk operation '{operation}' timed out and was rolled back",
                extra={"operation": operation, "requested": len(ids)},
            )
            raise OperationTimeoutError(
                f"Bulk operation '{operation}' exceeded {self.timeout_seconds}s",
                details={"operation": operation, "timeout_seconds": self.timeout_seconds},
                original_error=e,
            )
        except (Exception, asyncio.CancelledError):
            await self.session.rollback()
            LOGGER.warning(
                f"Bulk operation '{operation}' rolled back",
                exc_info=True,
                extra={"operation": operation, "requested": len(ids)},
            )
            raise

        LOGGER.info(
            f"Bulk operation '{operation}' committed",
            extra={"operation": operation, "requested": len(ids), "affected": affected},
        )
        return BulkOperationResult(requested_count=len(ids), affected_count=affected)


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"'{name}' must be a positive integer",
            details={"field": name, "value": value},
        )
