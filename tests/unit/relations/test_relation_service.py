"""Tests for relation listing and single-edge maintenance."""

import pytest
from sqlalchemy import select

from app.core.exceptions import RelationNotFoundError, ValidationError
from app.database.models import ObjectRelation
from app.services.relations.relation_service import RelationService
from tests.factories import CONTRACTOR_OF, EMPLOYEE_OF, OWNS_DOCUMENT, OWNS_VEHICLE, add_relation


@pytest.mark.asyncio
async def test_list_relations_maps_rows(seeded_session, graph, registry):
    session = seeded_session
    relation_id = await add_relation(session, graph.acme, graph.alice, EMPLOYEE_OF, note="since 2020")
    service = RelationService(session, registry)

    rows = await service.list_relations(graph.acme)

    assert len(rows) == 1
    row = rows[0]
    assert row.relation_id == relation_id
    assert row.object_from_id == graph.acme
    assert row.related_object_id == graph.alice
    assert row.note == "since 2020"
    assert row.relation_type_code == "employee_of"
    assert row.relation_type_name == "Employee of"
    assert row.from_object_type_code == "company"
    assert row.object_type_name == "Person"
    assert row.related_entity_type == "person"
    assert row.related_object_display_name == "Alice Smith"
    assert row.attributes["first_name"] == "Alice"
    assert row.attributes["sex_name"] == "Female"
    assert "company_name" not in row.attributes
    assert row.created_at is not None


@pytest.mark.asyncio
async def test_list_relations_unregistered_target_has_no_attributes(seeded_session, graph, registry):
    session = seeded_session
    await add_relation(session, graph.alice, graph.vehicle, OWNS_VEHICLE)

    rows = await RelationService(session, registry).list_relations(graph.alice)

    assert rows[0].related_entity_type is None
    assert rows[0].attributes == {}
    assert rows[0].related_object_display_name == f"Object #{graph.vehicle}"


@pytest.mark.asyncio
async def test_create_relation(seeded_session, graph, registry):
    service = RelationService(seeded_session, registry)

    relation = await service.create_relation(graph.alice, graph.acme, EMPLOYEE_OF, note="hired")

    assert relation.id is not None
    assert relation.is_active is True
    rows = await service.list_relations(graph.alice)
    assert [row.relation_id for row in rows] == [relation.id]


@pytest.mark.asyncio
async def test_create_relation_does_not_enforce_uniqueness(seeded_session, graph, registry):
    service = RelationService(seeded_session, registry)

    first = await service.create_relation(graph.alice, graph.acme, EMPLOYEE_OF)
    second = await service.create_relation(graph.alice, graph.acme, EMPLOYEE_OF)

    assert first.id != second.id


@pytest.mark.asyncio
async def test_create_relation_requires_existing_endpoints(seeded_session, graph, registry):
    service = RelationService(seeded_session, registry)

    with pytest.raises(ValidationError) as exc_info:
        await service.create_relation(graph.alice, 987654, EMPLOYEE_OF)
    assert exc_info.value.details["object_ids"] == [987654]

    with pytest.raises(ValidationError):
        await service.create_relation(graph.alice, graph.acme, 999)


@pytest.mark.asyncio
async def test_update_note(seeded_session, graph, registry):
    session = seeded_session
    relation_id = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)

    relation = await RelationService(session, registry).update_note(relation_id, "part time")

    assert relation.note == "part time"


@pytest.mark.asyncio
async def test_update_note_unknown_relation(seeded_session, registry):
    with pytest.raises(RelationNotFoundError):
        await RelationService(seeded_session, registry).update_note(4242, "x")


@pytest.mark.asyncio
async def test_delete_relation_is_idempotent(seeded_session, graph, registry):
    session = seeded_session
    relation_id = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    service = RelationService(session, registry)

    assert await service.delete_relation(relation_id) is True
    assert await service.delete_relation(relation_id) is False

    is_active = await session.scalar(select(ObjectRelation.is_active).where(ObjectRelation.id == relation_id))
    assert is_active is False
    assert await service.list_relations(graph.alice) == []


@pytest.mark.asyncio
async def test_delete_relation_unknown(seeded_session, registry):
    with pytest.raises(RelationNotFoundError):
        await RelationService(seeded_session, registry).delete_relation(4242)


@pytest.mark.asyncio
async def test_get_relation_includes_inactive(seeded_session, graph, registry):
    session = seeded_session
    relation_id = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF, is_active=False, note="left")

    relation = await RelationService(session, registry).get_relation(relation_id)

    assert relation.id == relation_id
    assert relation.object_to_id == graph.acme
    assert relation.is_active is False
    assert relation.note == "left"


@pytest.mark.asyncio
async def test_get_relation_unknown(seeded_session, registry):
    with pytest.raises(RelationNotFoundError) as exc_info:
        await RelationService(seeded_session, registry).get_relation(4242)

    assert exc_info.value.details == {"relation_ids": [4242]}


@pytest.mark.asyncio
async def test_list_all_filters(seeded_session, graph, registry):
    session = seeded_session
    employee = await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF)
    contractor = await add_relation(session, graph.bob, graph.acme, CONTRACTOR_OF)
    retired = await add_relation(session, graph.bob, graph.globex, EMPLOYEE_OF, is_active=False)
    document = await add_relation(session, graph.alice, graph.contract, OWNS_DOCUMENT)
    service = RelationService(session, registry)

    everything, total = await service.list_all()
    assert [relation.id for relation in everything] == [employee, contractor, retired, document]
    assert total == 4

    from_alice, _ = await service.list_all(object_from_id=graph.alice)
    assert [relation.id for relation in from_alice] == [employee, document]

    to_acme, _ = await service.list_all(object_to_id=graph.acme)
    assert [relation.id for relation in to_acme] == [employee, contractor]

    employees, _ = await service.list_all(object_relation_type_id=EMPLOYEE_OF)
    assert [relation.id for relation in employees] == [employee, retired]

    inactive, total = await service.list_all(is_active=False)
    assert [relation.id for relation in inactive] == [retired]
    assert total == 1

    combined, total = await service.list_all(object_from_id=graph.bob, is_active=True)
    assert [relation.id for relation in combined] == [contractor]
    assert total == 1


@pytest.mark.asyncio
async def test_list_all_paginates(seeded_session, graph, registry):
    session = seeded_session
    ids = [await add_relation(session, graph.alice, graph.acme, EMPLOYEE_OF) for _ in range(5)]
    service = RelationService(session, registry)

    first, total = await service.list_all(page=1, per_page=2)
    last, _ = await service.list_all(page=3, per_page=2)
    beyond, beyond_total = await service.list_all(page=4, per_page=2)

    assert [relation.id for relation in first] == ids[:2]
    assert [relation.id for relation in last] == ids[4:]
    assert total == 5
    assert beyond == []
    assert beyond_total == 5


@pytest.mark.parametrize(
    "page, per_page",
    [
        pytest.param(0, 20, id="page-zero"),
        pytest.param(1, 0, id="per-page-zero"),
        pytest.param(1, 101, id="per-page-too-large"),
    ],
)
@pytest.mark.asyncio
async def test_list_all_rejects_bad_pagination(seeded_session, registry, page, per_page):
    with pytest.raises(ValidationError):
        await RelationService(seeded_session, registry).list_all(page=page, per_page=per_page)
