"""Tests for the relation data quality scanner."""

import asyncio

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ConfigurationError, OperationTimeoutError
from app.database.models import ObjectRelation, ObjectRelationType
from app.services.data_quality.relation_scanner import (
    FROM_TYPE_MISMATCH,
    TO_TYPE_MISMATCH,
    UNREGISTERED_CHILD_TYPE,
    UNREGISTERED_PARENT_TYPE,
    RelationDataQualityScanner,
)
from app.services.registry.entity_registry import EntityTypeRegistry
from app.services.remediation.bulk_remediation_service import BulkRemediationService
from tests.factories import (
    COMPANY_TYPE,
    CONTRACTOR_OF,
    DE,
    EMPLOYEE_OF,
    EMPLOYER_OF,
    OWNS_DOCUMENT,
    OWNS_VEHICLE,
    PERSON_TYPE,
    VEHICLE_TYPE,
    add_relation,
    set_object_active,
)


# ----------------------------------------------------------------------
# Orphaned
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_orphan_detection_boundary(seeded_session, graph, registry):
    session = seeded_session
    orphan_candidate = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.bob, graph.globex, EMPLOYEE_OF)
    scanner = RelationDataQualityScanner(session, registry)

    assert await scanner.scan_orphaned() == []

    await set_object_active(session, graph.acme, False)
    findings = await scanner.scan_orphaned()

    assert [finding.relation_id for finding in findings] == [orphan_candidate]
    assert findings[0].inactive_side == "to"
    assert findings[0].from_is_active is True
    assert findings[0].to_is_active is False
    assert findings[0].relation_type_name == "Employee of"

    await set_object_active(session, graph.acme, True)
    assert await scanner.scan_orphaned() == []


@pytest.mark.asyncio
async def test_orphan_reports_inactive_side(seeded_session, graph, registry):
    session = seeded_session
    from_side = await add_relation(session, graph.alice, graph.globex, EMPLOYEE_OF)
    both_sides = await add_relation(session, graph.alice, graph.acme, CONTRACTOR_OF)
    await set_object_active(session, graph.alice, False)
    await set_object_active(session, graph.acme, False)

    findings = {f.relation_id: f for f in await RelationDataQualityScanner(session, registry).scan_orphaned()}

    assert findings[from_side].inactive_side == "from"
    assert findings[both_sides].inactive_side == "both"


@pytest.mark.asyncio
async def test_orphan_missing_object_counts_as_inactive(seeded_session, graph, registry):
    session = seeded_session
    relation_id = await add_relation(session, graph.alice, 99999, EMPLOYEE_OF)

    findings = await RelationDataQualityScanner(session, registry).scan_orphaned()

    assert [f.relation_id for f in findings] == [relation_id]
    assert findings[0].inactive_side == "to"


@pytest.mark.asyncio
async def test_orphan_ignores_inactive_edges(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF, is_active=False)
    await set_object_active(session, graph.acme, False)

    assert await RelationDataQualityScanner(session, registry).scan_orphaned() == []


# ----------------------------------------------------------------------
# Duplicates
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_duplicate_idempotence(seeded_session, graph, registry):
    session = seeded_session
    first = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    second = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    # Same endpoints, different type: not a duplicate
    await add_relation(session, graph.alice, graph.acme, CONTRACTOR_OF)
    scanner = RelationDataQualityScanner(session, registry)

    groups = await scanner.scan_duplicates()

    assert len(groups) == 1
    assert groups[0].duplicate_count == 2
    assert groups[0].relation_ids == [first, second]
    assert (groups[0].object_from_id, groups[0].object_to_id) == (graph.alice, graph.acme)
    assert groups[0].relation_type_code == "employee_of"

    await BulkRemediationService(session, registry).bulk_delete([second])

    assert await scanner.scan_duplicates() == []


@pytest.mark.asyncio
async def test_duplicates_ignore_inactive_copies(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF, is_active=False)

    assert await RelationDataQualityScanner(session, registry).scan_duplicates() == []


@pytest.mark.asyncio
async def test_duplicate_groups_ordered_by_first_member(seeded_session, graph, registry):
    session = seeded_session
    bob_first = await add_relation(session, graph.bob, graph.globex, CONTRACTOR_OF)
    alice_first = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    alice_second = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    bob_second = await add_relation(session, graph.bob, graph.globex, CONTRACTOR_OF)
    bob_third = await add_relation(session, graph.bob, graph.globex, CONTRACTOR_OF)

    groups = await RelationDataQualityScanner(session, registry).scan_duplicates()

    assert [group.relation_ids for group in groups] == [
        [bob_first, bob_second, bob_third],
        [alice_first, alice_second],
    ]
    assert [group.duplicate_count for group in groups] == [3, 2]


# ----------------------------------------------------------------------
# Invalid
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_invalid_type_detection(seeded_session, graph, registry):
    session = seeded_session
    valid = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    wrong_parent = await add_relation(session, graph.globex, graph.acme, EMPLOYEE_OF)

    findings = await RelationDataQualityScanner(session, registry).scan_invalid()

    assert [f.relation_id for f in findings] == [wrong_parent]
    finding = findings[0]
    assert finding.relation_id != valid
    assert finding.actual_from_type_id == COMPANY_TYPE
    assert finding.actual_from_type_code == "company"
    assert finding.expected_from_type_id == PERSON_TYPE
    assert finding.expected_from_type_code == "person"
    assert finding.actual_to_type_id == COMPANY_TYPE
    assert finding.expected_to_type_id == COMPANY_TYPE
    assert finding.violations == [FROM_TYPE_MISMATCH]


@pytest.mark.asyncio
async def test_invalid_reports_both_mismatches(seeded_session, graph, registry):
    session = seeded_session
    reversed_edge = await add_relation(session, graph.acme, graph.alice, EMPLOYEE_OF)

    findings = await RelationDataQualityScanner(session, registry).scan_invalid()

    assert [f.relation_id for f in findings] == [reversed_edge]
    assert findings[0].violations == [FROM_TYPE_MISMATCH, TO_TYPE_MISMATCH]


@pytest.mark.asyncio
async def test_unregistered_child_type_is_flagged_not_raised(seeded_session, graph, registry):
    session = seeded_session
    vehicle_edge = await add_relation(session, graph.alice, graph.vehicle, OWNS_VEHICLE)

    findings = await RelationDataQualityScanner(session, registry).scan_invalid()

    assert [f.relation_id for f in findings] == [vehicle_edge]
    assert findings[0].expected_to_type_id == VEHICLE_TYPE
    assert findings[0].violations == [UNREGISTERED_CHILD_TYPE]


@pytest.mark.asyncio
async def test_every_edge_of_a_partially_registered_type_is_flagged(seeded_session, graph):
    session = seeded_session
    ids = [
        await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF),
        await add_relation(session, graph.bob, graph.globex, EMPLOYEE_OF),
    ]
    # company is not registered, so employee_of cannot be checked
    registry = EntityTypeRegistry.from_type_ids({"person": PERSON_TYPE})

    findings = await RelationDataQualityScanner(session, registry).scan_invalid()

    assert [f.relation_id for f in findings] == ids
    assert all(f.violations == [UNREGISTERED_CHILD_TYPE] for f in findings)


@pytest.mark.asyncio
async def test_null_parent_type_is_flagged(seeded_session, graph, registry):
    session = seeded_session
    relation_type = await session.get(ObjectRelationType, OWNS_DOCUMENT)
    relation_type.parent_object_type_id = None
    await session.commit()
    relation_id = await add_relation(session, graph.alice, graph.contract, OWNS_DOCUMENT)

    findings = await RelationDataQualityScanner(session, registry).scan_invalid()

    assert [f.relation_id for f in findings] == [relation_id]
    assert findings[0].violations == [UNREGISTERED_PARENT_TYPE]


@pytest.mark.asyncio
async def test_invalid_scan_with_empty_registry_raises(seeded_session):
    with pytest.raises(ConfigurationError):
        await RelationDataQualityScanner(seeded_session, EntityTypeRegistry([])).scan_invalid()


# ----------------------------------------------------------------------
# Missing mirrors
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_mirror_symmetry(seeded_session, graph, registry):
    session = seeded_session
    forward = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    scanner = RelationDataQualityScanner(session, registry)

    findings = await scanner.scan_missing_mirrors()

    assert [f.relation_id for f in findings] == [forward]
    assert findings[0].mirrored_type_id == EMPLOYER_OF
    assert findings[0].mirrored_type_code == "employer_of"
    assert findings[0].mirrored_type_name == "Employer of"

    await add_relation(session, graph.acme, graph.alice, EMPLOYER_OF)

    assert await scanner.scan_missing_mirrors() == []


@pytest.mark.asyncio
async def test_inactive_reverse_edge_does_not_count(seeded_session, graph, registry):
    session = seeded_session
    forward = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.acme, graph.alice, EMPLOYER_OF, is_active=False)

    findings = await RelationDataQualityScanner(session, registry).scan_missing_mirrors()

    assert [f.relation_id for f in findings] == [forward]


@pytest.mark.asyncio
async def test_inactive_mirror_type_is_not_required(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    mirror = await session.get(ObjectRelationType, EMPLOYER_OF)
    mirror.is_active = False
    await session.commit()

    assert await RelationDataQualityScanner(session, registry).scan_missing_mirrors() == []


@pytest.mark.asyncio
async def test_types_without_mirror_are_ignored(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.globex, CONTRACTOR_OF)

    assert await RelationDataQualityScanner(session, registry).scan_missing_mirrors() == []


@pytest.mark.asyncio
async def test_mirror_names_follow_scan_language(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.acme, graph.alice, EMPLOYER_OF)

    findings = await RelationDataQualityScanner(session, registry, language_id=DE).scan_missing_mirrors()

    assert findings[0].mirrored_type_name == "Angestellt bei"
    assert findings[0].relation_type_name == "employer_of"


# ----------------------------------------------------------------------
# Summary and scan behaviour
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_summarize_counts_every_detector(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.alice, graph.vehicle, OWNS_VEHICLE)
    await set_object_active(session, graph.vehicle, False)

    summary = await RelationDataQualityScanner(session, registry).summarize()

    assert summary.orphaned == 1
    assert summary.duplicate_groups == 1
    assert summary.duplicate_relations == 2
    assert summary.invalid == 1
    assert summary.missing_mirrors == 2
    assert summary.total_issues == 5


@pytest.mark.asyncio
async def test_scans_have_no_side_effects(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    await add_relation(session, graph.acme, graph.alice, EMPLOYEE_OF)
    count_query = select(func.count()).select_from(ObjectRelation).where(ObjectRelation.is_active.is_(True))
    before = await session.scalar(count_query)

    scanner = RelationDataQualityScanner(session, registry)
    await scanner.summarize()
    await scanner.summarize()

    assert await session.scalar(count_query) == before


@pytest.mark.asyncio
async def test_scan_timeout(seeded_session, registry):
    scanner = RelationDataQualityScanner(seeded_session, registry, timeout_seconds=0.01)

    async def slow_scan():
        await asyncio.sleep(1)
        return []

    scanner._scan_duplicates = slow_scan

    with pytest.raises(OperationTimeoutError) as exc_info:
        await scanner.scan_duplicates()
    assert exc_info.value.details["scan"] == "duplicates"
