"""Shared fixtures: a SQLite- or DuckDB-backed store and a match service on top of it."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest
from sqlmodel import Session

from diverank.core.config import DiveRankConfig, RecorderConfig
from diverank.models import DiveSite
from diverank.services.match import MatchService
from diverank.services.storage import DiveRankStore

_DATABASE_FILES = {"sqlite": "diverank.db", "duckdb": "diverank.duckdb"}


@pytest.fixture
def config(request, tmp_path) -> DiveRankConfig:
    """SQLite by default; parametrize indirectly with "duckdb" for the DuckDB backend."""
    backend = getattr(request, "param", "sqlite")
    return DiveRankConfig(
        database_url=f"{backend}:///{tmp_path / _DATABASE_FILES[backend]}",
        data_dir=str(tmp_path),
        seed=7,
        recorder=RecorderConfig(max_attempts=10),
    )


@pytest.fixture
async def store(config: DiveRankConfig):
    store = DiveRankStore.from_config(config)
    yield store
    await store.close()


@pytest.fixture
def service(config: DiveRankConfig, store: DiveRankStore) -> MatchService:
    return MatchService(config, store)


@pytest.fixture
def make_sites(store: DiveRankStore) -> Callable[..., Awaitable[list[int]]]:
    """Create sites 1..N with the given ratings."""

    async def _make(*ratings: float) -> list[int]:
        def _add(session: Session) -> None:
            for site_id, rating in enumerate(ratings, start=1):
                session.add(
                    DiveSite(id=site_id, name=f"Site {site_id}", location="Test", rating=rating)
                )
            session.commit()

        await store.run_session(_add)
        return list(range(1, len(ratings) + 1))

    return _make


@pytest.fixture
def set_rating(store: DiveRankStore) -> Callable[[int, float], Awaitable[None]]:
    async def _set(site_id: int, rating: float) -> None:
        def _update(session: Session) -> None:
            site = session.get(DiveSite, site_id)
            site.rating = rating
            session.add(site)
            session.commit()

        await store.run_session(_update)

    return _set
