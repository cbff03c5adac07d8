"""Exception handlers — map domain errors onto the response envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.domain.exceptions import (
    DomainValidationError,
    DuplicateEntityError,
    EntityNotFoundError,
    GuardViolationError,
    InfrastructureError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, data: object = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": data, "message": message},
    )


async def _validation_error(request: Request, exc: DomainValidationError) -> JSONResponse:
    data = {"field": exc.field} if exc.field else None
    return _envelope(status.HTTP_400_BAD_REQUEST, exc.message, data)


async def _guard_violation(request: Request, exc: GuardViolationError) -> JSONResponse:
    data = None
    if exc.article_count or exc.child_count:
        data = {"article_count": exc.article_count, "child_count": exc.child_count}
    return _envelope(status.HTTP_400_BAD_REQUEST, exc.message, data)


async def _not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return _envelope(status.HTTP_404_NOT_FOUND, f"{exc.entity_type} not found")


async def _permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return _envelope(status.HTTP_403_FORBIDDEN, exc.message)


async def _duplicate(request: Request, exc: DuplicateEntityError) -> JSONResponse:
    return _envelope(status.HTTP_400_BAD_REQUEST, str(exc))


async def _infrastructure_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
    message = str(exc) if isinstance(exc, InfrastructureError) else "Internal server error"
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        f"{field}: {message}" if field else message,
        {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]},
    )


async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainValidationError, _validation_error)
    app.add_exception_handler(GuardViolationError, _guard_violation)
    app.add_exception_handler(EntityNotFoundError, _not_found)
    app.add_exception_handler(PermissionDeniedError, _permission_denied)
    app.add_exception_handler(DuplicateEntityError, _duplicate)
    app.add_exception_handler(InfrastructureError, _infrastructure_error)
    app.add_exception_handler(SQLAlchemyError, _infrastructure_error)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
