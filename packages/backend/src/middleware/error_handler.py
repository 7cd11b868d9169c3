"""FastAPI exception handlers.

Catches ServiceError subclasses, Pydantic's RequestValidationError and
Starlette HTTP exceptions (unknown route, wrong method) and converts them
into the standard error envelope. Anything else propagates outwards to the
recovery middleware.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.envelope import respond_error
from src.errors import ServiceError

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "TOO_MANY_REQUESTS",
}


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle ServiceError subclasses."""
    if exc.status_code >= 500:
        logger.warning("%s: %s", exc.code, exc.message, extra={"details": exc.details})
    return respond_error(
        request,
        exc.status_code,
        exc.code,
        exc.message,
        details=exc.details or None,
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return respond_error(
        request,
        422,
        "VALIDATION_ERROR",
        "Validation error",
        details={"fields": field_errors},
    )


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle routing-level HTTP errors (404, 405, ...)."""
    status_code = exc.status_code if 400 <= exc.status_code <= 599 else 500
    code = _HTTP_ERROR_CODES.get(status_code, "HTTP_ERROR")
    response = respond_error(request, status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)  # type: ignore[arg-type]
