"""DiveRank storage: engine lifecycle plus the catalog and history repositories."""

from __future__ import annotations

import gc
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool, PoolProxiedConnection
from sqlmodel import Session, SQLModel, create_engine

from diverank.core.config import DiveRankConfig

from .comparison_repository import ComparisonRepository
from .repository import AsyncRepository, T
from .site_repository import DiveSiteRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

_FILE_BACKED_DRIVERS = ("duckdb", "sqlite")


def _serialize_duckdb_connects(engine: Engine) -> None:
    """Open DuckDB connections one at a time.

    DuckDB attaches a database file once per process and hands later
    connections the cached instance; two threads attaching the same file at
    once fail with a file handle conflict.
    """
    lock = threading.Lock()

    @event.listens_for(engine, "do_connect")
    def _connect(dialect: Any, conn_rec: Any, cargs: Any, cparams: Any) -> Any:
        with lock:
            return dialect.connect(*cargs, **cparams)


class DiveRankStore(AsyncRepository):
    """Unified persistence layer for dive sites and comparisons.

    Exposes one repository per table and runs multi-table units of work
    (comparison recording, rating replay) in a single session.
    """

    def __init__(self, database_url: str) -> None:
        """Initialize the store and create missing tables.

        Args:
            database_url: SQLAlchemy URL, e.g. ``duckdb:///data/diverank.duckdb``.
        """
        self.database_url = database_url
        self._prepare_database_dir()
        # NullPool: every unit of work gets its own connection
        super().__init__(create_engine(database_url, poolclass=NullPool))
        self._anchor: PoolProxiedConnection | None = None
        if make_url(database_url).drivername.startswith("duckdb"):
            _serialize_duckdb_connects(self._engine)
            # Held open so the attached database instance outlives each unit of work
            self._anchor = self._engine.raw_connection()
        SQLModel.metadata.create_all(self._engine)
        self.sites = DiveSiteRepository(self._engine)
        self.comparisons = ComparisonRepository(self._engine)
        logger.info(
            "store_init",
            url=make_url(database_url).render_as_string(hide_password=True),
        )

    @classmethod
    def from_config(cls, config: DiveRankConfig) -> DiveRankStore:
        return cls(config.get_database_url())

    def _prepare_database_dir(self) -> None:
        """Create the parent directory of a file-backed database."""
        url = make_url(self.database_url)
        if not url.drivername.startswith(_FILE_BACKED_DRIVERS):
            return
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async def run_session(self, fn: Callable[[Session], T]) -> T:
        """Run ``fn(session)`` on a worker thread; see AsyncRepository."""
        return await self._run_session(fn)

    # ==================== Lifecycle ====================

    def _release_anchor(self) -> None:
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    async def close(self) -> None:
        """Dispose of the database engine."""
        self._release_anchor()
        if self._engine:
            self._engine.dispose()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        self._release_anchor()
        if self._engine:
            self._engine.dispose()

        gc.collect()
