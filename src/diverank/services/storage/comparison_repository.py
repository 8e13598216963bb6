"""Database persistence for resolved comparisons."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, distinct, func, or_
from sqlmodel import Session, col, select

from diverank.models import Comparison, pair_key

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


class ComparisonRepository(AsyncRepository):
    """Append and query the comparison history."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    # ==================== Transactional helpers ====================

    @staticmethod
    def has_voted_in(session: Session, actor_id: str, key: str) -> bool:
        """Indexed existence check for (actor, pair) inside the caller's transaction."""
        statement = (
            select(Comparison.id)
            .where(Comparison.actor_id == actor_id, Comparison.pair_key == key)
            .limit(1)
        )
        return session.exec(statement).first() is not None

    @staticmethod
    def append(
        session: Session,
        winner_id: int,
        loser_id: int,
        points_changed: int,
        actor_id: str | None,
    ) -> Comparison:
        """Stage a comparison row; flushed so constraint violations surface here."""
        comparison = Comparison(
            winner_id=winner_id,
            loser_id=loser_id,
            pair_key=pair_key(winner_id, loser_id),
            points_changed=points_changed,
            actor_id=actor_id,
        )
        session.add(comparison)
        session.flush()
        return comparison

    @staticmethod
    def list_chronological(session: Session) -> list[Comparison]:
        """Every comparison in replay order."""
        statement = select(Comparison).order_by(col(Comparison.timestamp), col(Comparison.id))
        return list(session.exec(statement).all())

    # ==================== Queries ====================

    async def has_voted(self, actor_id: str, site_a: int, site_b: int) -> bool:
        """Check whether the actor already resolved this unordered pair."""
        key = pair_key(site_a, site_b)
        return await self._run_session(lambda session: self.has_voted_in(session, actor_id, key))

    async def count_distinct_pairs_for_actor(self, actor_id: str) -> int:
        def _count(session: Session) -> int:
            statement = select(func.count(distinct(Comparison.pair_key))).where(
                Comparison.actor_id == actor_id
            )
            return session.exec(statement).one()

        return await self._run_session(_count)

    async def list_pair_keys_for_actor(self, actor_id: str) -> set[str]:
        """Normalized keys of every pair the actor has voted on."""

        def _get(session: Session) -> set[str]:
            statement = select(Comparison.pair_key).where(Comparison.actor_id == actor_id)
            return set(session.exec(statement).all())

        return await self._run_session(_get)

    async def list_pair_keys(self) -> set[str]:
        """Normalized keys of every pair with any history, from any actor."""

        def _get(session: Session) -> set[str]:
            return set(session.exec(select(Comparison.pair_key).distinct()).all())

        return await self._run_session(_get)

    async def list_opponents_faced(self, site_id: int, actor_id: str | None = None) -> set[int]:
        """Ids the site has met, limited to one actor's votes when actor_id is given."""

        def _get(session: Session) -> set[int]:
            statement = select(Comparison.winner_id, Comparison.loser_id).where(
                or_(Comparison.winner_id == site_id, Comparison.loser_id == site_id)
            )
            if actor_id is not None:
                statement = statement.where(Comparison.actor_id == actor_id)
            opponents: set[int] = set()
            for winner_id, loser_id in session.exec(statement).all():
                opponents.add(loser_id if winner_id == site_id else winner_id)
            return opponents

        return await self._run_session(_get)

    async def list_for_actor(self, actor_id: str) -> list[Comparison]:
        """Get the actor's comparisons, newest first."""

        def _get(session: Session) -> list[Comparison]:
            statement = (
                select(Comparison)
                .where(Comparison.actor_id == actor_id)
                .order_by(col(Comparison.timestamp).desc())
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def list_recent(self, limit: int) -> list[Comparison]:
        def _get(session: Session) -> list[Comparison]:
            statement = select(Comparison).order_by(col(Comparison.timestamp).desc()).limit(limit)
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def delete_for_actor(self, actor_id: str) -> int:
        """Delete every comparison the actor made. Returns how many were removed."""

        def _delete(session: Session) -> int:
            count = session.exec(
                select(func.count()).select_from(Comparison).where(Comparison.actor_id == actor_id)
            ).one()
            session.connection().execute(
                delete(Comparison.__table__).where(Comparison.__table__.c.actor_id == actor_id)
            )
            session.commit()
            return count

        return await self._run_session(_delete)
