"""Relation data quality routes. All scans are read-only."""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Request

from app.dependencies import get_data_quality_scanner
from app.services.data_quality.relation_scanner import RelationDataQualityScanner
from app.utils.responses import create_api_response

router = APIRouter()

Scanner = Annotated[RelationDataQualityScanner, Depends(get_data_quality_scanner)]


@router.get(
    "/orphaned",
    response_model=Dict[str, Any],
    summary="Active relations with an inactive endpoint",
    operation_id="scan_orphaned_relations",
)
async def scan_orphaned(request: Request, scanner: Scanner) -> Dict[str, Any]:
    return create_api_response(await scanner.scan_orphaned(), request)


@router.get(
    "/duplicates",
    response_model=Dict[str, Any],
    summary="Groups of active relations sharing (from, to, type)",
    operation_id="scan_duplicate_relations",
)
async def scan_duplicates(request: Request, scanner: Scanner) -> Dict[str, Any]:
    return create_api_response(await scanner.scan_duplicates(), request)


@router.get(
    "/invalid",
    response_model=Dict[str, Any],
    summary="Active relations whose endpoint types do not match the relation type",
    operation_id="scan_invalid_relations",
)
async def scan_invalid(request: Request, scanner: Scanner) -> Dict[str, Any]:
    return create_api_response(await scanner.scan_invalid(), request)


@router.get(
    "/missing-mirrors",
    response_model=Dict[str, Any],
    summary="Active relations missing their mirror relation",
    operation_id="scan_missing_mirror_relations",
)
async def scan_missing_mirrors(request: Request, scanner: Scanner) -> Dict[str, Any]:
    return create_api_response(await scanner.scan_missing_mirrors(), request)


@router.get(
    "/summary",
    response_model=Dict[str, Any],
    summary="Finding counts across all relation scans",
    operation_id="summarize_relation_data_quality",
)
async def summarize(request: Request, scanner: Scanner) -> Dict[str, Any]:
    summary = await scanner.summarize()
    data = summary.model_dump()
    data["total_issues"] = summary.total_issues
    return create_api_response(data, request)
