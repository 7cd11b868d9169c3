"""SQLAlchemy-backed datastore handle.

The service works without a database: ``connect_datastore`` returns
``NotConfigured`` when no URL is set or the initial connection fails, and
the health endpoints report the database as ``not_configured``.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.datastore.types import Connected, Dependency, NotConfigured

logger = logging.getLogger(__name__)


class Datastore:
    """Shared, read-only-after-startup database handle."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._closed = False

    @classmethod
    def from_url(cls, database_url: str) -> Datastore:
        is_sqlite = database_url.startswith("sqlite")
        connect_args = {"check_same_thread": False} if is_sqlite else {}
        engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
        return cls(engine)

    @property
    def closed(self) -> bool:
        return self._closed

    def ping_sync(self) -> None:
        """Run ``SELECT 1`` on a pooled connection."""
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    async def ping(self) -> None:
        # The engine has no async deadline of its own; callers race this
        # against a timer and the worker thread is left to finish.
        await asyncio.to_thread(self.ping_sync)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._engine.dispose()
        logger.info("Database connection pool closed")


def connect_datastore(database_url: str) -> Dependency:
    """Open the datastore described by ``database_url``.

    Returns ``NotConfigured`` if the URL is empty or the first connection
    attempt fails; the service then starts without a database.
    """
    if not database_url:
        logger.info("DATABASE_URL not set, running without database")
        return NotConfigured()

    datastore: Datastore | None = None
    try:
        datastore = Datastore.from_url(database_url)
        datastore.ping_sync()
    except (SQLAlchemyError, ImportError, ValueError) as exc:
        if datastore is not None:
            datastore.close()
        logger.warning("Failed to connect to database: %s", exc)
        logger.warning("Server will start without database connection")
        return NotConfigured()

    logger.info("Connected to database")
    return Connected(datastore)
