"""Health and readiness checks over the configured dependencies.

Liveness (``check_health``) always produces a report: each dependency is
``healthy``, ``unhealthy`` or ``not_configured``, and the aggregate is
``unhealthy`` only if some dependency is. A missing dependency does not
degrade the aggregate, so the service stays live without a database.

Readiness (``check_ready``) fails with ``NotReadyError`` as soon as one
configured dependency fails its probe. Neither operation retries; the
orchestrator is expected to poll again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from src.datastore.types import Connected, Dependency, NotConfigured, Probe
from src.envelope import utc_timestamp
from src.errors import NotReadyError, ProbeFailedError
from src.models.health import HealthStatus, OverallStatus, ServiceState

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


async def run_probe(probe: Probe, timeout: float) -> None:
    """Check ``probe`` within ``timeout`` seconds.

    Raises ``ProbeFailedError`` if the probe raises or the timer fires
    first. Cancellation of the calling request propagates unchanged.
    """
    try:
        await asyncio.wait_for(probe.ping(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ProbeFailedError(f"Probe timed out after {timeout}s") from exc
    except Exception as exc:
        raise ProbeFailedError(f"Probe failed: {exc}") from exc


class HealthChecker:
    """Probes named dependencies for the health and readiness endpoints.

    Parameters
    ----------
    dependencies:
        Mapping of service name (e.g. ``"database"``) to its handle.
    version:
        Version string reported by the liveness endpoint.
    probe_timeout_seconds:
        Deadline for each individual probe.
    """

    def __init__(
        self,
        dependencies: Mapping[str, Dependency],
        *,
        version: str = "1.0.0",
        probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self._dependencies = dict(dependencies)
        self._version = version
        self._timeout = probe_timeout_seconds

    async def _state_of(self, name: str, dependency: Dependency) -> ServiceState:
        if isinstance(dependency, NotConfigured):
            return ServiceState.NOT_CONFIGURED
        try:
            await run_probe(dependency.handle, self._timeout)
        except ProbeFailedError as exc:
            logger.warning("Health probe for %s failed: %s", name, exc.message)
            return ServiceState.UNHEALTHY
        return ServiceState.HEALTHY

    async def check_health(self) -> HealthStatus:
        names = list(self._dependencies)
        states = await asyncio.gather(
            *(self._state_of(name, self._dependencies[name]) for name in names)
        )
        services = dict(zip(names, states))

        status = OverallStatus.HEALTHY
        if any(state is ServiceState.UNHEALTHY for state in states):
            status = OverallStatus.UNHEALTHY

        return HealthStatus(
            status=status,
            version=self._version,
            time=utc_timestamp(),
            services=services,
        )

    async def check_ready(self) -> None:
        """Return if every configured dependency answers its probe.

        Raises ``NotReadyError`` naming the first dependency that does not.
        """
        for name, dependency in self._dependencies.items():
            if not isinstance(dependency, Connected):
                continue
            try:
                await run_probe(dependency.handle, self._timeout)
            except ProbeFailedError as exc:
                logger.warning("Readiness probe for %s failed: %s", name, exc.message)
                raise NotReadyError(f"{name.capitalize()} not ready") from exc
