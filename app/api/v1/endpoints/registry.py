"""Entity type registry routes."""

from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_async_session
from app.services.registry.registry_loader import registry_cache
from app.utils.logging import get_logger
from app.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/refresh",
    response_model=Dict[str, Any],
    summary="Reload the entity type registry",
    description="Drops the cached registry and reloads it from the active object types.",
    operation_id="refresh_entity_registry",
)
async def refresh_registry(
    request: Request,
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Dict[str, Any]:
    registry_cache.invalidate()
    registry = await registry_cache.refresh(db_session)
    LOGGER.info("Entity type registry refreshed on request", extra={"entity_types": len(registry)})
    return create_api_response(
        {
            "entity_types": [
                {"code": config.code, "object_type_id": config.object_type_id} for config in registry
            ]
        },
        request,
    )
