from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.logging import get_logger
from app.schemas.errors import ErrorBody, ErrorResponse

logger = get_logger("api")

_HTTP_ERROR_CODES: dict[int, str] = {
    400: "bad_request",
    404: "not_found",
}


def _error_payload(
    request: Request,
    *,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    body = ErrorBody(
        code=code,
        message=message,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return ErrorResponse(error=body).model_dump()


def _respond(request: Request, status_code: int, payload: dict[str, Any]) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=payload)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers["x-request-id"] = request_id
    return response


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    details = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    return _respond(
        request,
        exc.status_code,
        _error_payload(request, code=code, message="Request failed.", details=details),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _respond(
        request,
        422,
        _error_payload(
            request,
            code="validation_error",
            message="Invalid query parameters.",
            details={"errors": exc.errors()},
        ),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Typically a store that was never initialized or synced.
    logger.error(
        "Payroll store query failed.",
        path=request.url.path,
        error=type(exc).__name__,
        request_id=getattr(request.state, "request_id", None),
    )
    return _respond(
        request,
        503,
        _error_payload(
            request,
            code="store_unavailable",
            message="Payroll store is not available. Run the sync or init script first.",
            details={"error": type(exc).__name__},
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled API error.",
        path=request.url.path,
        error=str(exc),
        request_id=getattr(request.state, "request_id", None),
    )
    return _respond(
        request,
        500,
        _error_payload(
            request,
            code="internal_error",
            message="Unexpected server error.",
            details={"detail": str(exc)},
        ),
    )
