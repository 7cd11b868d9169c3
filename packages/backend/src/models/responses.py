"""Response envelope models.

Every API reply is wrapped in one of three envelopes:

- success:   { success: true, data?, message?, meta: { timestamp, request_id? } }
- error:     { success: false, error: { code, message, details?, metadata: { timestamp, request_id? } } }
- paginated: { success: true, data: [...], pagination: { page, limit, total, total_pages } }

Optional keys are left *unset* rather than set to None and serialised with
``exclude_unset=True``, so an absent ``data`` stays distinct from
``data: null``.
"""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Meta(BaseModel):
    """Timestamp and correlation identifier stamped on success envelopes."""

    timestamp: str
    request_id: str | None = None


class ErrorMetadata(Meta):
    """Same shape as ``Meta``, carried inside the error object."""


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Any = None
    metadata: ErrorMetadata


class SuccessEnvelope(BaseModel, Generic[T]):
    """JSON envelope for successful replies."""

    success: Literal[True] = True
    data: T | None = None
    message: str | None = None
    meta: Meta


class ErrorEnvelope(BaseModel):
    """JSON envelope for error replies."""

    success: Literal[False] = False
    error: ErrorDetail


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedEnvelope(BaseModel, Generic[T]):
    """JSON envelope for list replies split into pages."""

    success: Literal[True] = True
    data: list[T]
    pagination: Pagination
