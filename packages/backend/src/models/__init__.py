"""Public models for the backend service."""

from src.models.context import CorrelationContext
from src.models.health import HealthStatus, OverallStatus, ReadyStatus, ServiceState
from src.models.responses import (
    ErrorDetail,
    ErrorEnvelope,
    ErrorMetadata,
    Meta,
    PaginatedEnvelope,
    Pagination,
    SuccessEnvelope,
)

__all__ = [
    "CorrelationContext",
    "ErrorDetail",
    "ErrorEnvelope",
    "ErrorMetadata",
    "HealthStatus",
    "Meta",
    "OverallStatus",
    "PaginatedEnvelope",
    "Pagination",
    "ReadyStatus",
    "ServiceState",
    "SuccessEnvelope",
]
