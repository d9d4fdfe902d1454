from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Request
from pydantic import BaseModel

from app.core.exceptions import AppError


def _request_id(request: Optional[Request]) -> str:
    if request is not None and hasattr(request.state, "request_id"):
        return request.state.request_id
    return str(uuid4())


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def create_api_response(
    data: Any,
    request: Optional[Request] = None,
    pagination: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    """Wrap a payload in the ``{success, data, meta}`` envelope.

    List endpoints pass ``pagination``, which is added as a sibling of ``data``.
    """
    response = {
        "success": True,
        "data": _to_jsonable(data),
        "meta": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": _request_id(request),
        },
    }
    if pagination is not None:
        response["pagination"] = pagination
    return response


def build_pagination(page: int, per_page: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": (total + per_page - 1) // per_page,
    }


def create_error_response(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Dict[str, Any]:
    """Build the ``{success: false, error}`` envelope."""
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
        "meta": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": _request_id(request),
        },
    }


def error_response_from(error: AppError, request: Optional[Request] = None) -> Dict[str, Any]:
    return create_error_response(**error.to_dict(), request=request)
