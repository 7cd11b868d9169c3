"""CORS middleware.

Applies the fixed ``CorsPolicy`` to every response. Preflight ``OPTIONS``
requests are answered here with 204 and never reach a route handler.
"""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.config.cors_policy import CorsPolicy


class CORSMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing a single cross-origin policy."""

    def __init__(self, app, policy: CorsPolicy | None = None) -> None:  # noqa: ANN001
        super().__init__(app)
        self._policy = policy or CorsPolicy()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=204)
            response.headers["Access-Control-Max-Age"] = str(self._policy.max_age)
        else:
            response = await call_next(request)

        self._apply_headers(request, response)
        return response

    def _apply_headers(self, request: Request, response: Response) -> None:
        policy = self._policy
        allow_origin = policy.resolve_origin(request.headers.get("origin"))
        if allow_origin is not None:
            response.headers["Access-Control-Allow-Origin"] = allow_origin
            if allow_origin != "*":
                response.headers["Vary"] = "Origin"
        if policy.allow_credentials:
            response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = ", ".join(policy.allow_methods)
        response.headers["Access-Control-Allow-Headers"] = ", ".join(policy.allow_headers)
        if policy.expose_headers:
            response.headers["Access-Control-Expose-Headers"] = ", ".join(policy.expose_headers)
