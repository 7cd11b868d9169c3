"""Per-request correlation state.

A ``CorrelationContext`` is created by the request logger middleware when a
request enters the pipeline and lives on ``request.state`` until the
request completes. It is never shared between requests.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field

from starlette.requests import Request


@dataclass(frozen=True)
class CorrelationContext:
    """Correlation identifier and start time for one in-flight request."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def short_id(self) -> str:
        """Prefix used to tag log lines."""
        return self.request_id[:8]

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000

    def attach(self, request: Request) -> None:
        request.state.correlation = self
        request.state.request_id = self.request_id


def get_correlation(request: Request | None) -> CorrelationContext | None:
    """Return the context attached to ``request``, or None outside the chain."""
    if request is None:
        return None
    return getattr(request.state, "correlation", None)


def get_request_id(request: Request | None) -> str | None:
    context = get_correlation(request)
    return context.request_id if context else None
