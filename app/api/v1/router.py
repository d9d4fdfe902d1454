from fastapi import APIRouter

from app.api.v1.endpoints import data_quality, health, registry, relations, remediation

# Create API router
api_router = APIRouter()

# Include routers; fixed /relations/... paths come before /relations/{relation_id}
api_router.include_router(data_quality.router, prefix="/relations/data-quality", tags=["Data Quality"])
api_router.include_router(remediation.router, prefix="/relations", tags=["Remediation"])
api_router.include_router(relations.router, prefix="", tags=["Relations"])
api_router.include_router(registry.router, prefix="/registry", tags=["Registry"])
api_router.include_router(health.router, prefix="", tags=["Health"])

__all__ = ["api_router"]
