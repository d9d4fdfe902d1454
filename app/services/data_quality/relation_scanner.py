"""Relation data quality scanner.

Four read-only detectors over the active relation edges:

- orphaned: an endpoint object is inactive or missing
- duplicates: several active edges share (from, to, type)
- invalid: endpoint types do not conform to the relation type
- missing mirrors: the inverse edge required by the relation type is absent

Each detector is one or two set-based queries, has no side effects and can
be called on its own. Findings are ordered by relation id.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.config import settings
from app.core.exceptions import ConfigurationError, OperationTimeoutError
from app.database.models import Object, ObjectRelation, ObjectRelationType, ObjectType, Translation
from app.schemas.relations import (
    DataQualitySummary,
    DuplicateGroup,
    InvalidRelation,
    MissingMirrorRelation,
    OrphanedRelation,
)
from app.services.registry.entity_registry import EntityTypeRegistry
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")

FROM_TYPE_MISMATCH = "from_type_mismatch"
TO_TYPE_MISMATCH = "to_type_mismatch"
UNREGISTERED_PARENT_TYPE = "unregistered_parent_type"
UNREGISTERED_CHILD_TYPE = "unregistered_child_type"


class RelationDataQualityScanner:
    """Detects integrity violations in ``object_relations``."""

    def __init__(
        self,
        session: AsyncSession,
        registry: EntityTypeRegistry,
        language_id: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.session = session
        self.registry = registry
        self.language_id = language_id or settings.relations.default_language_id
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.relations.scan_timeout_seconds
        )

    async def scan_orphaned(self) -> List[OrphanedRelation]:
        """Active edges whose source or target object is inactive or missing."""
        return await self._run_scan("orphaned", self._scan_orphaned)

    async def scan_duplicates(self) -> List[DuplicateGroup]:
        """Groups of active edges sharing the same (from, to, type)."""
        return await self._run_scan("duplicates", self._scan_duplicates)

    async def scan_invalid(self) -> List[InvalidRelation]:
        """Active edges whose endpoint types do not conform to their relation type.

        Edges whose relation type declares no parent/child type, or one that is
        not registered, are reported rather than raised so the whole graph can
        still be scanned.

        Raises:
            ConfigurationError: If the registry has no entity types
        """
        if self.registry.is_empty:
            raise ConfigurationError("Entity type registry is empty; cannot check relation types")
        return await self._run_scan("invalid", self._scan_invalid)

    async def scan_missing_mirrors(self) -> List[MissingMirrorRelation]:
        """Active edges whose mirror type requires an inverse edge that does not exist."""
        return await self._run_scan("missing_mirrors", self._scan_missing_mirrors)

    async def summarize(self) -> DataQualitySummary:
        """Run all four detectors and count the findings."""
        orphaned = await self.scan_orphaned()
        duplicates = await self.scan_duplicates()
        invalid = await self.scan_invalid()
        missing_mirrors = await self.scan_missing_mirrors()

        return DataQualitySummary(
            orphaned=len(orphaned),
            duplicate_groups=len(duplicates),
            duplicate_relations=sum(group.duplicate_count for group in duplicates),
            invalid=len(invalid),
            missing_mirrors=len(missing_mirrors),
        )

    async def _run_scan(self, name: str, scan: Callable[[], Awaitable[List[T]]]) -> List[T]:
        try:
            findings = await asyncio.wait_for(scan(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Relation scan '{name}' timed out",
                extra={"scan": name, "timeout_seconds": self.timeout_seconds},
            )
            raise OperationTimeoutError(
                f"Relation scan '{name}' exceeded {self.timeout_seconds}s",
                details={"scan": name, "timeout_seconds": self.timeout_seconds},
                original_error=e,
            )
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Relation scan '{name}' failed: {str(e)}",
                exc_info=True,
                extra={"scan": name},
            )
            raise

        LOGGER.info(
            f"Relation scan '{name}' completed",
            extra={"scan": name, "findings": len(findings)},
        )
        return findings

    def _name(self, label: Any, code_column: Any) -> Any:
        """Translated text in the scan language, falling back to the code."""
        return func.coalesce(label.text, code_column)

    def _label_join(self, label: Any, code_column: Any) -> Any:
        return and_(label.code == code_column, label.language_id == self.language_id)

    # ------------------------------------------------------------------
    # Orphaned
    # ------------------------------------------------------------------

    async def _scan_orphaned(self) -> List[OrphanedRelation]:
        o_from = aliased(Object, name="o_from")
        o_to = aliased(Object, name="o_to")
        ort = aliased(ObjectRelationType, name="ort")
        ort_name = aliased(Translation, name="ort_name")

        query = (
            select(
                ObjectRelation.id,
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
                ObjectRelation.created_at,
                ort.code.label("relation_type_code"),
                self._name(ort_name, ort.code).label("relation_type_name"),
                o_from.is_active.label("from_is_active"),
                o_to.is_active.label("to_is_active"),
            )
            .outerjoin(o_from, o_from.id == ObjectRelation.object_from_id)
            .outerjoin(o_to, o_to.id == ObjectRelation.object_to_id)
            .outerjoin(ort, ort.id == ObjectRelation.object_relation_type_id)
            .outerjoin(ort_name, self._label_join(ort_name, ort.code))
            .where(
                ObjectRelation.is_active.is_(True),
                or_(
                    o_from.id.is_(None),
                    o_from.is_active.is_(False),
                    o_to.id.is_(None),
                    o_to.is_active.is_(False),
                ),
            )
            .order_by(ObjectRelation.id)
        )
        result = await self.session.execute(query)

        findings = []
        for row in result.all():
            # A missing object counts as inactive
            from_is_active = row.from_is_active is True
            to_is_active = row.to_is_active is True
            if not from_is_active and not to_is_active:
                inactive_side = "both"
            elif not from_is_active:
                inactive_side = "from"
            else:
                inactive_side = "to"

            findings.append(
                OrphanedRelation(
                    relation_id=row.id,
                    object_from_id=row.object_from_id,
                    object_to_id=row.object_to_id,
                    object_relation_type_id=row.object_relation_type_id,
                    relation_type_code=row.relation_type_code,
                    relation_type_name=row.relation_type_name,
                    from_is_active=from_is_active,
                    to_is_active=to_is_active,
                    inactive_side=inactive_side,
                    created_at=row.created_at,
                )
            )
        return findings

    # ------------------------------------------------------------------
    # Duplicates
    # ------------------------------------------------------------------

    async def _scan_duplicates(self) -> List[DuplicateGroup]:
        ort = aliased(ObjectRelationType, name="ort")
        ort_name = aliased(Translation, name="ort_name")

        groups = (
            select(
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
                func.count(ObjectRelation.id).label("duplicate_count"),
                func.min(ObjectRelation.id).label("first_id"),
            )
            .where(ObjectRelation.is_active.is_(True))
            .group_by(
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
            )
            .having(func.count(ObjectRelation.id) > 1)
            .subquery("dup_groups")
        )

        group_query = (
            select(
                groups.c.object_from_id,
                groups.c.object_to_id,
                groups.c.object_relation_type_id,
                groups.c.duplicate_count,
                ort.code.label("relation_type_code"),
                self._name(ort_name, ort.code).label("relation_type_name"),
            )
            .outerjoin(ort, ort.id == groups.c.object_relation_type_id)
            .outerjoin(ort_name, self._label_join(ort_name, ort.code))
            .order_by(groups.c.first_id)
        )
        group_rows = (await self.session.execute(group_query)).all()
        if not group_rows:
            return []

        member_query = (
            select(
                ObjectRelation.id,
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
            )
            .join(
                groups,
                and_(
                    groups.c.object_from_id == ObjectRelation.object_from_id,
                    groups.c.object_to_id == ObjectRelation.object_to_id,
                    groups.c.object_relation_type_id == ObjectRelation.object_relation_type_id,
                ),
            )
            .where(ObjectRelation.is_active.is_(True))
            .order_by(ObjectRelation.id)
        )
        members: dict[tuple[int, int, int], List[int]] = {}
        for row in (await self.session.execute(member_query)).all():
            key = (row.object_from_id, row.object_to_id, row.object_relation_type_id)
            members.setdefault(key, []).append(row.id)

        return [
            DuplicateGroup(
                object_from_id=row.object_from_id,
                object_to_id=row.object_to_id,
                object_relation_type_id=row.object_relation_type_id,
                relation_type_code=row.relation_type_code,
                relation_type_name=row.relation_type_name,
                duplicate_count=row.duplicate_count,
                relation_ids=members.get(
                    (row.object_from_id, row.object_to_id, row.object_relation_type_id), []
                ),
            )
            for row in group_rows
        ]

    # ------------------------------------------------------------------
    # Invalid
    # ------------------------------------------------------------------

    async def _scan_invalid(self) -> List[InvalidRelation]:
        o_from = aliased(Object, name="o_from")
        o_to = aliased(Object, name="o_to")
        ot_from = aliased(ObjectType, name="ot_from")
        ot_to = aliased(ObjectType, name="ot_to")
        ot_parent = aliased(ObjectType, name="ot_parent")
        ot_child = aliased(ObjectType, name="ot_child")
        ort = aliased(ObjectRelationType, name="ort")
        ort_name = aliased(Translation, name="ort_name")

        registered = self.registry.object_type_ids
        expected_from = ort.parent_object_type_id
        expected_to = ort.child_object_type_id

        query = (
            select(
                ObjectRelation.id,
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
                ort.code.label("relation_type_code"),
                self._name(ort_name, ort.code).label("relation_type_name"),
                o_from.object_type_id.label("actual_from_type_id"),
                ot_from.code.label("actual_from_type_code"),
                o_to.object_type_id.label("actual_to_type_id"),
                ot_to.code.label("actual_to_type_code"),
                expected_from.label("expected_from_type_id"),
                ot_parent.code.label("expected_from_type_code"),
                expected_to.label("expected_to_type_id"),
                ot_child.code.label("expected_to_type_code"),
            )
            .outerjoin(o_from, o_from.id == ObjectRelation.object_from_id)
            .outerjoin(o_to, o_to.id == ObjectRelation.object_to_id)
            .outerjoin(ot_from, ot_from.id == o_from.object_type_id)
            .outerjoin(ot_to, ot_to.id == o_to.object_type_id)
            .outerjoin(ort, ort.id == ObjectRelation.object_relation_type_id)
            .outerjoin(ort_name, self._label_join(ort_name, ort.code))
            .outerjoin(ot_parent, ot_parent.id == expected_from)
            .outerjoin(ot_child, ot_child.id == expected_to)
            .where(
                ObjectRelation.is_active.is_(True),
                or_(
                    o_from.object_type_id.is_distinct_from(expected_from),
                    o_to.object_type_id.is_distinct_from(expected_to),
                    expected_from.is_(None),
                    expected_to.is_(None),
                    expected_from.not_in(registered),
                    expected_to.not_in(registered),
                ),
            )
            .order_by(ObjectRelation.id)
        )
        result = await self.session.execute(query)

        findings = []
        for row in result.all():
            violations = []
            if row.expected_from_type_id is not None and row.actual_from_type_id != row.expected_from_type_id:
                violations.append(FROM_TYPE_MISMATCH)
            if row.expected_to_type_id is not None and row.actual_to_type_id != row.expected_to_type_id:
                violations.append(TO_TYPE_MISMATCH)
            if not self.registry.is_registered(row.expected_from_type_id):
                violations.append(UNREGISTERED_PARENT_TYPE)
            if not self.registry.is_registered(row.expected_to_type_id):
                violations.append(UNREGISTERED_CHILD_TYPE)

            findings.append(
                InvalidRelation(
                    relation_id=row.id,
                    object_from_id=row.object_from_id,
                    object_to_id=row.object_to_id,
                    object_relation_type_id=row.object_relation_type_id,
                    relation_type_code=row.relation_type_code,
                    relation_type_name=row.relation_type_name,
                    actual_from_type_id=row.actual_from_type_id,
                    actual_from_type_code=row.actual_from_type_code,
                    actual_to_type_id=row.actual_to_type_id,
                    actual_to_type_code=row.actual_to_type_code,
                    expected_from_type_id=row.expected_from_type_id,
                    expected_from_type_code=row.expected_from_type_code,
                    expected_to_type_id=row.expected_to_type_id,
                    expected_to_type_code=row.expected_to_type_code,
                    violations=violations,
                )
            )
        return findings

    # ------------------------------------------------------------------
    # Missing mirrors
    # ------------------------------------------------------------------

    async def _scan_missing_mirrors(self) -> List[MissingMirrorRelation]:
        ort = aliased(ObjectRelationType, name="ort")
        mirror = aliased(ObjectRelationType, name="mirror")
        ort_name = aliased(Translation, name="ort_name")
        mirror_name = aliased(Translation, name="mirror_name")
        reverse = aliased(ObjectRelation, name="reverse_rel")

        reverse_exists = exists(
            select(reverse.id).where(
                reverse.object_from_id == ObjectRelation.object_to_id,
                reverse.object_to_id == ObjectRelation.object_from_id,
                reverse.object_relation_type_id == ort.mirrored_type_id,
                reverse.is_active.is_(True),
            )
        )

        query = (
            select(
                ObjectRelation.id,
                ObjectRelation.object_from_id,
                ObjectRelation.object_to_id,
                ObjectRelation.object_relation_type_id,
                ort.code.label("relation_type_code"),
                self._name(ort_name, ort.code).label("relation_type_name"),
                mirror.id.label("mirrored_type_id"),
                mirror.code.label("mirrored_type_code"),
                self._name(mirror_name, mirror.code).label("mirrored_type_name"),
            )
            .join(ort, ort.id == ObjectRelation.object_relation_type_id)
            .join(mirror, and_(mirror.id == ort.mirrored_type_id, mirror.is_active.is_(True)))
            .outerjoin(ort_name, self._label_join(ort_name, ort.code))
            .outerjoin(mirror_name, self._label_join(mirror_name, mirror.code))
            .where(ObjectRelation.is_active.is_(True), ~reverse_exists)
            .order_by(ObjectRelation.id)
        )
        result = await self.session.execute(query)

        return [
            MissingMirrorRelation(
                relation_id=row.id,
                object_from_id=row.object_from_id,
                object_to_id=row.object_to_id,
                object_relation_type_id=row.object_relation_type_id,
                relation_type_code=row.relation_type_code,
                relation_type_name=row.relation_type_name,
                mirrored_type_id=row.mirrored_type_id,
                mirrored_type_code=row.mirrored_type_code,
                mirrored_type_name=row.mirrored_type_name,
            )
            for row in result.all()
        ]
