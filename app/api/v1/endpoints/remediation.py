"""Bulk remediation routes.

Each call is all-or-nothing. Clients re-run the data quality scans
afterwards to confirm the fix.
"""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Request

from app.dependencies import get_remediation_service
from app.schemas.relations import BulkDeleteRequest, BulkReassignRequest, BulkUpdateTypeRequest
from app.services.remediation.bulk_remediation_service import BulkRemediationService
from app.utils.responses import create_api_response

router = APIRouter()

Remediation = Annotated[BulkRemediationService, Depends(get_remediation_service)]


@router.post(
    "/bulk-delete",
    response_model=Dict[str, Any],
    summary="Soft-delete a batch of relations",
    operation_id="bulk_delete_relations",
)
async def bulk_delete(request: Request, payload: BulkDeleteRequest, service: Remediation) -> Dict[str, Any]:
    result = await service.bulk_delete(payload.relation_ids)
    return create_api_response(result, request)


@router.post(
    "/bulk-reassign",
    response_model=Dict[str, Any],
    summary="Point a batch of relations at a new target object",
    operation_id="bulk_reassign_relation_target",
)
async def bulk_reassign(request: Request, payload: BulkReassignRequest, service: Remediation) -> Dict[str, Any]:
    result = await service.bulk_reassign_target(
        payload.relation_ids,
        old_object_to_id=payload.old_object_to_id,
        new_object_to_id=payload.new_object_to_id,
    )
    return create_api_response(result, request)


@router.post(
    "/bulk-update-type",
    response_model=Dict[str, Any],
    summary="Change the relation type of a batch of relations",
    operation_id="bulk_update_relation_type",
)
async def bulk_update_type(
    request: Request, payload: BulkUpdateTypeRequest, service: Remediation
) -> Dict[str, Any]:
    result = await service.bulk_update_relation_type(
        payload.relation_ids,
        old_relation_type_id=payload.old_relation_type_id,
        new_relation_type_id=payload.new_relation_type_id,
    )
    return create_api_response(result, request)
