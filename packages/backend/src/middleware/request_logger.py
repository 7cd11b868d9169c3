"""Request logger middleware.

Generates a UUID4 correlation identifier for every incoming request,
stores it in ``request.state`` (see ``CorrelationContext``), adds an
``X-Request-ID`` response header, and logs method, path, status and latency
once the downstream chain has produced a response.
"""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.models.context import CorrelationContext

logger = logging.getLogger(__name__)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that assigns a request ID and logs each request.

    A new identifier is always generated; a caller-supplied ``X-Request-ID``
    is not trusted. If the downstream chain raises, the request is logged
    with status 500 and the exception is re-raised for the recovery layer.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = CorrelationContext()
        context.attach(request)

        try:
            response: Response = await call_next(request)
        except Exception:
            self._log(request, context, 500)
            raise

        response.headers["X-Request-ID"] = context.request_id
        self._log(request, context, response.status_code)
        return response

    @staticmethod
    def _log(request: Request, context: CorrelationContext, status_code: int) -> None:
        duration_ms = round(context.elapsed_ms(), 2)
        logger.info(
            "[%s] %s %s %d %.2fms",
            context.short_id,
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            extra={
                "request_id": context.request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
        )
