"""Recovery middleware.

Outermost layer of the chain. Any exception escaping the rest of the
pipeline (request logger, CORS, exception handlers, route handlers) is
logged with its traceback and converted into a generic 500
``INTERNAL_ERROR`` envelope. The failing request ends there; the process
keeps serving.
"""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.envelope import respond_error
from src.models.context import CorrelationContext, get_correlation

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that turns unhandled faults into an error envelope.

    The ``X-Request-ID`` header is set from the request's correlation
    context. If the fault happened before the request logger ran, a fresh
    context is attached so the header and the envelope still agree.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            context = get_correlation(request)
            if context is None:
                context = CorrelationContext()
                context.attach(request)

            logger.exception(
                "[PANIC] %r",
                exc,
                extra={
                    "request_id": context.request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
            )
            response = respond_error(
                request,
                500,
                "INTERNAL_ERROR",
                "An unexpected error occurred",
            )
            response.headers["X-Request-ID"] = context.request_id
            return response
