"""Unit tests for the server lifecycle manager."""

from __future__ import annotations

import asyncio
import signal
import socket

import httpx
import pytest

from conftest import FakeProbe
from src.config.settings import ServiceSettings
from src.datastore.types import Connected, NotConfigured
from src.server import (
    LifecycleError,
    LifecycleState,
    ServerLifecycle,
    ServerStartupError,
)


def _settings(port: int = 0) -> ServiceSettings:
    return ServiceSettings(
        _env_file=None,
        host="127.0.0.1",
        port=port,
        environment="test",
        shutdown_timeout_seconds=1,
    )


def _lifecycle(probe: FakeProbe | None = None, port: int = 0) -> ServerLifecycle:
    dependency = Connected(probe) if probe is not None else NotConfigured()
    return ServerLifecycle(_settings(port), connect=lambda _url: dependency)


@pytest.fixture()
def occupied_port():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    yield blocker.getsockname()[1]
    blocker.close()


class TestStateMachine:
    def test_starts_in_starting(self):
        assert _lifecycle().state is LifecycleState.STARTING

    def test_bind_moves_to_listening(self):
        lifecycle = _lifecycle()
        lifecycle.bind()
        try:
            assert lifecycle.state is LifecycleState.LISTENING
            assert lifecycle.bound_port and lifecycle.bound_port > 0
        finally:
            lifecycle.finish()
        assert lifecycle.state is LifecycleState.TERMINATED

    def test_serve_requires_bound_socket(self):
        with pytest.raises(LifecycleError):
            asyncio.run(_lifecycle().serve())

    def test_shutdown_before_listening_is_ignored(self):
        lifecycle = _lifecycle()
        assert lifecycle.begin_shutdown() is False
        assert lifecycle.state is LifecycleState.STARTING

    def test_finish_is_idempotent(self):
        probe = FakeProbe()
        lifecycle = _lifecycle(probe)
        lifecycle.build_server()
        lifecycle.bind()
        lifecycle.finish()
        lifecycle.finish()
        assert lifecycle.state is LifecycleState.TERMINATED
        assert probe.closed is True


class TestBindFailure:
    def test_bind_failure_raises_and_terminates(self, occupied_port):
        probe = FakeProbe()
        lifecycle = _lifecycle(probe, port=occupied_port)
        lifecycle.build_server()

        with pytest.raises(ServerStartupError):
            lifecycle.bind()

        assert lifecycle.state is LifecycleState.TERMINATED
        assert probe.closed is True

    def test_run_returns_non_zero_on_bind_failure(self, occupied_port, caplog):
        lifecycle = _lifecycle(port=occupied_port)
        assert lifecycle.run() == 1
        assert any("Failed to bind" in r.getMessage() for r in caplog.records)


class TestSignals:
    def test_signal_starts_shutdown_once(self):
        lifecycle = _lifecycle()
        server = lifecycle.build_server()
        lifecycle.bind()
        try:
            server.handle_exit(signal.SIGTERM, None)
            assert lifecycle.state is LifecycleState.SHUTTING_DOWN
            assert server.should_exit is True

            # A second signal does not re-enter shutdown
            server.handle_exit(signal.SIGTERM, None)
            assert lifecycle.state is LifecycleState.SHUTTING_DOWN
        finally:
            lifecycle.finish()


class TestServe:
    @pytest.mark.asyncio
    async def test_serves_then_drains_and_closes_resources(self):
        probe = FakeProbe()
        lifecycle = _lifecycle(probe)
        server = lifecycle.build_server()
        lifecycle.bind()
        port = lifecycle.bound_port

        task = asyncio.create_task(lifecycle.serve())
        for _ in range(100):
            if server.started:
                break
            await asyncio.sleep(0.05)
        assert server.started

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", trust_env=False) as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["data"]["services"]["database"] == "healthy"
        assert probe.closed is False

        assert lifecycle.begin_shutdown() is True
        await asyncio.wait_for(task, timeout=10)

        assert lifecycle.state is LifecycleState.TERMINATED
        assert probe.closed is True

    @pytest.mark.asyncio
    async def test_in_flight_request_drains_before_datastore_closes(self):
        class _RecordingProbe(FakeProbe):
            closed_during_ping: bool | None = None

            async def ping(self) -> None:
                await super().ping()
                self.closed_during_ping = self.closed

        probe = _RecordingProbe(delay=0.5)
        lifecycle = _lifecycle(probe)
        server = lifecycle.build_server()
        lifecycle.bind()
        port = lifecycle.bound_port

        task = asyncio.create_task(lifecycle.serve())
        for _ in range(100):
            if server.started:
                break
            await asyncio.sleep(0.05)
        assert server.started

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", trust_env=False) as client:
            pending = asyncio.create_task(client.get("/health"))
            for _ in range(100):
                if probe.calls:
                    break
                await asyncio.sleep(0.01)
            assert probe.calls == 1

            assert lifecycle.begin_shutdown() is True
            resp = await pending

        assert resp.status_code == 200
        assert resp.json()["data"]["services"] == {"database": "healthy"}
        assert probe.closed_during_ping is False

        await asyncio.wait_for(task, timeout=10)
        assert probe.closed is True
        assert lifecycle.state is LifecycleState.TERMINATED


def _ipv6_loopback_available() -> bool:
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as sock:
            sock.bind(("::1", 0))
    except OSError:
        return False
    return True


class TestAddressFamily:
    @pytest.mark.skipif(not _ipv6_loopback_available(), reason="IPv6 loopback unavailable")
    def test_ipv6_host_binds_ipv6_socket(self):
        lifecycle = ServerLifecycle(
            ServiceSettings(_env_file=None, host="::1", port=0, environment="test"),
            connect=lambda _url: NotConfigured(),
        )
        sock = lifecycle.bind()
        try:
            assert sock.family == socket.AF_INET6
            assert lifecycle.state is LifecycleState.LISTENING
        finally:
            lifecycle.finish()

    def test_ipv4_host_binds_ipv4_socket(self):
        lifecycle = _lifecycle()
        sock = lifecycle.bind()
        try:
            assert sock.family == socket.AF_INET
        finally:
            lifecycle.finish()
