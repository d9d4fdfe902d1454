"""Exception handlers that render every failure as the error envelope."""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    AppError,
    ConfigurationError,
    ConstraintViolationError,
    OperationTimeoutError,
    RelationNotFoundError,
    StoreError,
    ValidationError,
)
from app.utils.logging import get_logger
from app.utils.responses import create_error_response, error_response_from

LOGGER = get_logger(__name__)

# Most specific class first
STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (RelationNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConstraintViolationError, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (OperationTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
)


def status_for(error: AppError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_for(exc)
    log = LOGGER.error if status_code >= 500 else LOGGER.warning
    log(
        f"{exc.code}: {exc.message}",
        extra={"path": request.url.path, "code": exc.code, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(error_response_from(exc, request)))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            create_error_response(
                ValidationError.code,
                "Invalid request parameters",
                {"errors": exc.errors()},
                request,
            )
        ),
    )


async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    LOGGER.error(
        f"Relational store error: {str(exc)}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=create_error_response(StoreError.code, "Relational store request failed", None, request),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)
