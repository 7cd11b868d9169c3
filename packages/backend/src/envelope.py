"""Uniform response helpers.

Handlers reply through exactly one of ``respond_success``,
``respond_error`` or ``respond_paginated`` and return the resulting
response; nothing is written to the response after that. The request is
used only to read the correlation identifier, so ``None`` is accepted where
no pipeline is involved.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from fastapi.responses import JSONResponse
from starlette.requests import Request

from src.errors import InvalidPaginationError
from src.models.context import get_request_id
from src.models.responses import (
    ErrorDetail,
    ErrorEnvelope,
    ErrorMetadata,
    Meta,
    PaginatedEnvelope,
    Pagination,
    SuccessEnvelope,
)

_ERROR_CODE_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

# Sentinel: "no data argument" is distinct from data=None.
_ABSENT: Any = object()


def utc_timestamp() -> str:
    """Current UTC time in RFC3339, second precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _meta_fields(request: Request | None) -> dict[str, str]:
    fields = {"timestamp": utc_timestamp()}
    request_id = get_request_id(request)
    if request_id is not None:
        fields["request_id"] = request_id
    return fields


def _render(status_code: int, envelope: SuccessEnvelope | ErrorEnvelope | PaginatedEnvelope) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", exclude_unset=True),
    )


def respond_success(
    request: Request | None,
    status_code: int,
    data: Any = _ABSENT,
    message: str | None = None,
) -> JSONResponse:
    """Wrap ``data`` in a success envelope stamped with timestamp and request id."""
    if not 200 <= status_code <= 399:
        raise ValueError(f"success status code must be in [200, 399], got {status_code}")

    fields: dict[str, Any] = {"success": True, "meta": Meta(**_meta_fields(request))}
    if data is not _ABSENT:
        fields["data"] = data
    if message:
        fields["message"] = message
    return _render(status_code, SuccessEnvelope[Any](**fields))


def respond_error(
    request: Request | None,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    """Build an error envelope; ``details`` is omitted when None."""
    if not 400 <= status_code <= 599:
        raise ValueError(f"error status code must be in [400, 599], got {status_code}")
    if not _ERROR_CODE_RE.match(code):
        raise ValueError(f"error code must be an uppercase snake token, got {code!r}")

    detail_fields: dict[str, Any] = {
        "code": code,
        "message": message,
        "metadata": ErrorMetadata(**_meta_fields(request)),
    }
    if details is not None:
        detail_fields["details"] = details
    return _render(
        status_code,
        ErrorEnvelope(success=False, error=ErrorDetail(**detail_fields)),
    )


def total_pages(total: int, limit: int) -> int:
    """Ceiling of ``total / limit``.

    Raises InvalidPaginationError for ``limit <= 0`` or ``total < 0`` before
    any arithmetic is attempted.
    """
    if limit <= 0:
        raise InvalidPaginationError(limit=limit)
    if total < 0:
        raise InvalidPaginationError("Pagination total must not be negative", total=total)
    return (total + limit - 1) // limit


def respond_paginated(
    request: Request | None,
    status_code: int,
    data: list[Any],
    page: int,
    limit: int,
    total: int,
) -> JSONResponse:
    """Wrap one page of ``data`` with page/limit/total/total_pages."""
    if not 200 <= status_code <= 399:
        raise ValueError(f"success status code must be in [200, 399], got {status_code}")

    pagination = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages(total, limit),
    )
    return _render(
        status_code,
        PaginatedEnvelope[Any](success=True, data=list(data), pagination=pagination),
    )
