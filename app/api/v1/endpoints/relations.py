"""Relation listing and single-edge routes."""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from app.dependencies import get_language_id, get_relation_service
from app.schemas.relations import CreateRelationRequest, RelationRecord, UpdateNoteRequest
from app.services.relations.relation_service import MAX_PER_PAGE, RelationService
from app.utils.logging import get_logger
from app.utils.responses import build_pagination, create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/objects/{object_id}/relations",
    response_model=Dict[str, Any],
    summary="List relations of an object",
    description=(
        "Returns every active relation leaving the object, one row per edge, "
        "with the related object's type, status, entity attributes and display name."
    ),
    operation_id="list_object_relations",
)
async def list_relations(
    request: Request,
    object_id: int,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
    language_id: Annotated[int, Depends(get_language_id)],
    object_relation_type_id: Annotated[Optional[int], Query()] = None,
    order_by: Annotated[str, Query()] = "relation_created_at",
    descending: Annotated[bool, Query()] = True,
) -> Dict[str, Any]:
    rows = await relation_service.list_relations(
        object_id,
        relation_type_id=object_relation_type_id,
        language_id=language_id,
        order_by=order_by,
        descending=descending,
    )
    return create_api_response(rows, request)


@router.get(
    "/relations",
    response_model=Dict[str, Any],
    summary="List relation edges",
    description=(
        "Returns raw relation edges across all objects, filtered by endpoint, "
        "relation type and active flag, one page at a time."
    ),
    operation_id="list_all_object_relations",
)
async def list_all_relations(
    request: Request,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
    object_from_id: Annotated[Optional[int], Query(gt=0)] = None,
    object_to_id: Annotated[Optional[int], Query(gt=0)] = None,
    object_relation_type_id: Annotated[Optional[int], Query(gt=0)] = None,
    is_active: Annotated[Optional[bool], Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=MAX_PER_PAGE)] = 20,
) -> Dict[str, Any]:
    relations, total = await relation_service.list_all(
        object_from_id=object_from_id,
        object_to_id=object_to_id,
        object_relation_type_id=object_relation_type_id,
        is_active=is_active,
        page=page,
        per_page=per_page,
    )
    records = [RelationRecord.model_validate(relation) for relation in relations]
    return create_api_response(records, request, pagination=build_pagination(page, per_page, total))


@router.get(
    "/relations/{relation_id}",
    response_model=Dict[str, Any],
    summary="Get a relation",
    operation_id="get_object_relation",
)
async def get_relation(
    request: Request,
    relation_id: int,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
) -> Dict[str, Any]:
    relation = await relation_service.get_relation(relation_id)
    return create_api_response(RelationRecord.model_validate(relation), request)


@router.post(
    "/relations",
    status_code=status.HTTP_201_CREATED,
    response_model=Dict[str, Any],
    summary="Create a relation",
    operation_id="create_object_relation",
)
async def create_relation(
    request: Request,
    payload: CreateRelationRequest,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
) -> Dict[str, Any]:
    relation = await relation_service.create_relation(
        object_from_id=payload.object_from_id,
        object_to_id=payload.object_to_id,
        object_relation_type_id=payload.object_relation_type_id,
        note=payload.note,
        created_by=payload.created_by,
    )
    return create_api_response(RelationRecord.model_validate(relation), request)


@router.patch(
    "/relations/{relation_id}/note",
    response_model=Dict[str, Any],
    summary="Update the note of a relation",
    operation_id="update_object_relation_note",
)
async def update_note(
    request: Request,
    relation_id: int,
    payload: UpdateNoteRequest,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
) -> Dict[str, Any]:
    relation = await relation_service.update_note(relation_id, payload.note)
    return create_api_response(RelationRecord.model_validate(relation), request)


@router.delete(
    "/relations/{relation_id}",
    response_model=Dict[str, Any],
    summary="Soft-delete a relation",
    description="Marks the relation inactive. Deleting an inactive relation is a no-op.",
    operation_id="delete_object_relation",
)
async def delete_relation(
    request: Request,
    relation_id: int,
    relation_service: Annotated[RelationService, Depends(get_relation_service)],
) -> Dict[str, Any]:
    changed = await relation_service.delete_relation(relation_id)
    return create_api_response({"relation_id": relation_id, "changed": changed}, request)
