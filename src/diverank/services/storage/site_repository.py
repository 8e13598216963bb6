"""Database persistence for the dive-site catalog."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from diverank.models import DiveSite, DiveSiteSeed

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

_DESCRIPTIVE_FIELDS = (
    "name",
    "location",
    "types",
    "description",
    "image_url",
    "depth_min",
    "depth_max",
    "difficulty",
)


class DiveSiteRepository(AsyncRepository):
    """Read the catalog and write ratings, counters and rank snapshots."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def list_all(self) -> list[DiveSite]:
        """Get every dive site ordered by id."""

        def _get(session: Session) -> list[DiveSite]:
            statement = select(DiveSite).order_by(col(DiveSite.id))
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def get_by_id(self, site_id: int) -> DiveSite | None:
        """Get a dive site or None if the id is unknown."""
        return await self._run_session(lambda session: session.get(DiveSite, site_id))

    async def count(self) -> int:
        def _count(session: Session) -> int:
            return session.exec(select(func.count()).select_from(DiveSite)).one()

        return await self._run_session(_count)

    async def upsert_sites(self, seeds: Sequence[DiveSiteSeed]) -> tuple[int, int]:
        """Create missing sites and refresh descriptive fields of existing ones.

        Ratings, counters and ranks of existing sites are left alone.

        Returns:
            Tuple of (created, updated) counts.
        """

        def _upsert(session: Session) -> tuple[int, int]:
            created = updated = 0
            for seed in seeds:
                existing = session.get(DiveSite, seed.id)
                if existing is None:
                    session.add(DiveSite.model_validate(seed.model_dump()))
                    created += 1
                    continue
                for field_name in _DESCRIPTIVE_FIELDS:
                    setattr(existing, field_name, getattr(seed, field_name))
                session.add(existing)
                updated += 1
            session.commit()
            return created, updated

        return await self._run_session(_upsert)

    async def save_rank_snapshot(self, ranks: dict[int, int]) -> None:
        """Store each site's freshly computed rank in both rank slots."""

        def _save(session: Session) -> None:
            table = DiveSite.__table__
            connection = session.connection()
            for site_id, rank in ranks.items():
                connection.execute(
                    update(table)
                    .where(
                        table.c.id == site_id,
                        or_(table.c.previous_rank != rank, table.c.current_rank != rank),
                    )
                    .values(previous_rank=rank, current_rank=rank)
                )
            session.commit()

        await self._run_session(_save)

    @staticmethod
    def update_rating_and_counter(
        session: Session, site: DiveSite, new_rating: float, *, won: bool
    ) -> bool:
        """Write a new rating and bump wins or losses inside the caller's transaction.

        The update only applies if the counters still match ``site``; any
        comparison committed in between changes them.

        Returns:
            False if the row changed since ``site`` was read.
        """
        table = DiveSite.__table__
        values: dict[str, float | int] = {"rating": new_rating}
        if won:
            values["wins"] = site.wins + 1
        else:
            values["losses"] = site.losses + 1

        statement = (
            update(table)
            .where(
                table.c.id == site.id,
                table.c.wins == site.wins,
                table.c.losses == site.losses,
            )
            .values(**values)
            .returning(table.c.id)
        )
        return session.connection().execute(statement).first() is not None
