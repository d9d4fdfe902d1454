"""Centralized dependency injection for FastAPI application.

This module provides factory functions for creating service instances
bound to the request's database session and the current entity registry.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session
from app.services.data_quality.relation_scanner import RelationDataQualityScanner
from app.services.registry.entity_registry import EntityTypeRegistry
from app.services.registry.registry_loader import registry_cache
from app.services.relations.relation_service import RelationService
from app.services.remediation.bulk_remediation_service import BulkRemediationService


async def get_registry(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> EntityTypeRegistry:
    """Get the current entity type registry, loading it on first use.

    Args:
        db_session: Database session used when the registry must be loaded

    Returns:
        EntityTypeRegistry: Immutable registry snapshot for this request
    """
    return await registry_cache.get(db_session)


async def get_language_id(
    x_language_id: Annotated[Optional[int], Header(alias="X-Language-ID", gt=0)] = None,
    language_id: Annotated[Optional[int], Query(gt=0)] = None,
) -> int:
    """Resolve the label language: header first, then query parameter, then default."""
    if x_language_id is not None:
        return x_language_id
    if language_id is not None:
        return language_id
    return settings.relations.default_language_id


async def get_relation_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    registry: Annotated[EntityTypeRegistry, Depends(get_registry)],
) -> RelationService:
    """Get relation service instance.

    Returns:
        RelationService: Service for listing and editing relations
    """
    return RelationService(db_session, registry)


async def get_data_quality_scanner(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    registry: Annotated[EntityTypeRegistry, Depends(get_registry)],
    language_id: Annotated[int, Depends(get_language_id)],
) -> RelationDataQualityScanner:
    """Get data quality scanner instance.

    Returns:
        RelationDataQualityScanner: Scanner labelled in the request language
    """
    return RelationDataQualityScanner(db_session, registry, language_id=language_id)


async def get_remediation_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    registry: Annotated[EntityTypeRegistry, Depends(get_registry)],
) -> BulkRemediationService:
    """Get bulk remediation service instance.

    Returns:
        BulkRemediationService: Service for all-or-nothing bulk edits
    """
    return BulkRemediationService(db_session, registry)
