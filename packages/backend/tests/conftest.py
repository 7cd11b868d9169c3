"""Shared test fixtures, fake probes and hypothesis strategies for the backend test suite."""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from hypothesis import strategies as st

from src.app import create_app
from src.config.cors_policy import CorsPolicy
from src.config.settings import ServiceSettings
from src.datastore.types import Connected, Dependency, NotConfigured


# ---------------------------------------------------------------------------
# Keep the developer's environment out of ServiceSettings
# ---------------------------------------------------------------------------

_SETTINGS_ENV = [
    "HOST",
    "PORT",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "APP_VERSION",
    "DATABASE_URL",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "JWT_SECRET",
    "JWT_EXPIRY_HOURS",
    "REFRESH_EXPIRY_HOURS",
    "RAZORPAY_KEY_ID",
    "RAZORPAY_KEY_SECRET",
    "RAZORPAY_WEBHOOK_SECRET",
    "FCM_SERVER_KEY",
    "MSG91_AUTH_KEY",
    "MSG91_SENDER_ID",
    "MSG91_FLOW_ID",
    "PROBE_TIMEOUT_SECONDS",
    "SHUTDOWN_TIMEOUT_SECONDS",
    "CORS_POLICY_PATH",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Unset settings env vars and run from an empty dir so no .env is read."""
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Fake dependency probes
# ---------------------------------------------------------------------------


class FakeProbe:
    """In-memory stand-in for a datastore handle."""

    def __init__(self, *, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def ping(self) -> None:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("connection refused")

    def close(self) -> None:
        self.closed = True


# Probe deadline used by tests that exercise timeouts
FAST_TIMEOUT = 0.05


def dependency_for(kind: str) -> Dependency:
    """Build a dependency in one of the named states used across tests."""
    if kind == "not_configured":
        return NotConfigured()
    if kind == "healthy":
        return Connected(FakeProbe())
    if kind == "failing":
        return Connected(FakeProbe(fail=True))
    if kind == "slow":
        return Connected(FakeProbe(delay=1.0))
    raise ValueError(kind)


# ---------------------------------------------------------------------------
# Settings / app fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> ServiceSettings:
    """Test settings with a short probe deadline."""
    return ServiceSettings(
        _env_file=None,
        environment="test",
        probe_timeout_seconds=FAST_TIMEOUT,
    )


def build_app(
    database: Dependency | None = None,
    *,
    probe_timeout_seconds: float = FAST_TIMEOUT,
    cors_policy: CorsPolicy | None = None,
) -> FastAPI:
    """Create the full application around an explicit dependency."""
    settings = ServiceSettings(
        _env_file=None,
        environment="test",
        probe_timeout_seconds=probe_timeout_seconds,
    )
    return create_app(
        settings,
        database=database if database is not None else NotConfigured(),
        cors_policy=cors_policy or CorsPolicy(),
    )


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

dependency_kinds = st.sampled_from(["not_configured", "healthy", "failing", "slow"])

# JSON-compatible payloads
json_scalars = st.none() | st.booleans() | st.integers(-(10**6), 10**6) | st.text(max_size=20)
json_payloads = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(min_size=1, max_size=8), children, max_size=4),
    max_leaves=10,
)

error_codes = st.from_regex(r"[A-Z][A-Z0-9_]{0,20}", fullmatch=True)
