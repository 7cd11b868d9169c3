"""Server lifecycle: bind, serve, graceful shutdown.

States move strictly forward::

    STARTING ──bind ok──▶ LISTENING ──SIGINT/SIGTERM──▶ SHUTTING_DOWN ──resources closed──▶ TERMINATED
        └──────────────bind failed───────────────────────────────────────────────────────────▲

On a termination signal uvicorn stops accepting connections and waits up
to ``shutdown_timeout_seconds`` for in-flight requests before the datastore
handle is closed.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from enum import Enum

import uvicorn
from fastapi import FastAPI

from src.app import create_app
from src.config.settings import ServiceSettings
from src.datastore.database import connect_datastore
from src.datastore.types import Dependency, close_dependency

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    STARTING = "starting"
    LISTENING = "listening"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.STARTING: {LifecycleState.LISTENING, LifecycleState.TERMINATED},
    LifecycleState.LISTENING: {LifecycleState.SHUTTING_DOWN},
    LifecycleState.SHUTTING_DOWN: {LifecycleState.TERMINATED},
    LifecycleState.TERMINATED: set(),
}


class LifecycleError(RuntimeError):
    """Illegal lifecycle state transition."""


class ServerStartupError(RuntimeError):
    """The listening socket could not be bound."""


def _bound_socket(host: str, port: int) -> socket.socket:
    """Bind a TCP socket on the first address ``host`` resolves to.

    The address family follows the host, so ``::`` and IPv6 literals bind
    an IPv6 socket.
    """
    family, socktype, proto, _, address = socket.getaddrinfo(
        host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE
    )[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(address)
    except OSError:
        sock.close()
        raise
    return sock


class _LifecycleServer(uvicorn.Server):
    """uvicorn server that reports termination signals to the lifecycle."""

    def __init__(self, config: uvicorn.Config, lifecycle: ServerLifecycle) -> None:
        super().__init__(config)
        self._lifecycle = lifecycle

    def handle_exit(self, sig: int, frame) -> None:  # noqa: ANN001
        self._lifecycle.mark_shutting_down(reason=f"signal {sig}")
        super().handle_exit(sig, frame)

    async def shutdown(self, sockets=None) -> None:  # noqa: ANN001
        # Connections are drained and the app lifespan has exited by now.
        await super().shutdown(sockets=sockets)
        self._lifecycle.finish()


class ServerLifecycle:
    """Owns the listening socket, the datastore handle and the server run.

    Parameters
    ----------
    settings:
        Immutable configuration snapshot.
    app_factory:
        Builds the ASGI app from settings and the datastore handle.
    connect:
        Opens the datastore from a URL; returns ``NotConfigured`` when unset.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        *,
        app_factory: Callable[..., FastAPI] = create_app,
        connect: Callable[[str], Dependency] = connect_datastore,
    ) -> None:
        self._settings = settings
        self._app_factory = app_factory
        self._connect = connect
        self._state = LifecycleState.STARTING
        self._database: Dependency | None = None
        self._socket: socket.socket | None = None
        self._server: _LifecycleServer | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def bound_port(self) -> int | None:
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    def _transition(self, target: LifecycleState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise LifecycleError(f"Cannot move from {self._state.value} to {target.value}")
        logger.info("Server state: %s -> %s", self._state.value, target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def bind(self) -> socket.socket:
        """Bind the listening socket and enter LISTENING.

        Raises ``ServerStartupError`` (after moving to TERMINATED) if the
        address is unavailable.
        """
        host, port = self._settings.host, self._settings.port
        try:
            sock = _bound_socket(host, port)
        except OSError as exc:
            logger.error("Failed to bind %s:%d: %s", host, port, exc)
            self._release()
            self._transition(LifecycleState.TERMINATED)
            raise ServerStartupError(f"Failed to bind {host}:{port}: {exc}") from exc

        self._socket = sock
        self._transition(LifecycleState.LISTENING)
        logger.info(
            "Server starting on %s:%d (environment: %s)",
            host,
            self.bound_port,
            self._settings.environment,
        )
        return sock

    def build_server(self) -> _LifecycleServer:
        if self._database is None:
            self._database = self._connect(self._settings.database_url)
        app = self._app_factory(self._settings, database=self._database)
        config = uvicorn.Config(
            app,
            lifespan="on",
            log_config=None,
            timeout_graceful_shutdown=self._settings.shutdown_timeout_seconds,
        )
        self._server = _LifecycleServer(config, self)
        return self._server

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def mark_shutting_down(self, reason: str = "requested") -> bool:
        """Enter SHUTTING_DOWN once; later calls are ignored.

        Returns True if this call started the shutdown.
        """
        if self._state is not LifecycleState.LISTENING:
            return False
        logger.info("Shutting down server (%s)...", reason)
        self._transition(LifecycleState.SHUTTING_DOWN)
        return True

    def begin_shutdown(self, reason: str = "requested") -> bool:
        """Ask the running server to stop, as a termination signal would."""
        started = self.mark_shutting_down(reason)
        if started and self._server is not None:
            self._server.should_exit = True
        return started

    def _release(self) -> None:
        if self._database is not None:
            close_dependency(self._database)
        if self._socket is not None:
            self._socket.close()

    def finish(self) -> None:
        """Close held resources and enter TERMINATED. Idempotent."""
        if self._state is LifecycleState.TERMINATED:
            return
        self.mark_shutting_down(reason="server stopped")
        self._release()
        self._transition(LifecycleState.TERMINATED)
        logger.info("Server terminated")

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    async def serve(self) -> None:
        """Serve on the bound socket until shutdown completes."""
        if self._state is not LifecycleState.LISTENING or self._socket is None:
            raise LifecycleError("serve() requires a bound socket")
        server = self._server or self.build_server()
        try:
            await server.serve(sockets=[self._socket])
        finally:
            self.finish()

    def run(self) -> int:
        """Bind, serve until a termination signal, and return an exit status."""
        self._database = self._connect(self._settings.database_url)
        try:
            self.bind()
        except ServerStartupError:
            return 1
        self.build_server()
        try:
            asyncio.run(self.serve())
        except KeyboardInterrupt:
            # uvicorn re-raises a captured SIGINT after its shutdown completes.
            logger.debug("Interrupt re-raised after shutdown")
        return 0
