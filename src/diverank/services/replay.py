"""Offline rebuild of every rating from the comparison history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import update
from sqlmodel import Session, select

from diverank.models import DiveSite
from diverank.services.storage import ComparisonRepository

if TYPE_CHECKING:
    from diverank.ranking import RatingModel
    from diverank.services.storage import DiveRankStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ReplaySummary:
    """Outcome of a rating rebuild.

    Attributes:
        replayed: Comparisons applied.
        skipped: Comparisons referencing a site no longer in the catalog.
    """

    replayed: int
    skipped: int


async def recompute_ratings(store: DiveRankStore, model: RatingModel) -> ReplaySummary:
    """Reset all sites and replay every comparison in chronological order.

    Runs as one transaction. The reset is the first statement so the store's
    write locks on every site row are held for the whole replay, which keeps
    live comparisons out until it commits. Each comparison's stored delta is
    rewritten with the recomputed value.

    Args:
        store: Storage layer holding sites and comparisons.
        model: Rating model; its ``initial_rating`` is the reset value.

    Returns:
        ReplaySummary with applied and skipped counts.
    """

    def _replay(session: Session) -> ReplaySummary:
        table = DiveSite.__table__
        session.connection().execute(
            update(table).values(rating=model.initial_rating, wins=0, losses=0)
        )
        sites = {site.id: site for site in session.exec(select(DiveSite)).all()}

        replayed = skipped = 0
        for comparison in ComparisonRepository.list_chronological(session):
            winner = sites.get(comparison.winner_id)
            loser = sites.get(comparison.loser_id)
            if winner is None or loser is None:
                logger.warning("replay_skipped_comparison", id=comparison.id)
                skipped += 1
                continue

            result = model.update(winner.rating, loser.rating)
            winner.rating = result.winner_rating
            winner.wins += 1
            loser.rating = result.loser_rating
            loser.losses += 1
            if comparison.points_changed != result.points_changed:
                comparison.points_changed = result.points_changed
                session.add(comparison)
            replayed += 1

        session.add_all(sites.values())
        session.commit()
        return ReplaySummary(replayed=replayed, skipped=skipped)

    summary = await store.run_session(_replay)
    logger.info("ratings_recomputed", replayed=summary.replayed, skipped=summary.skipped)
    return summary
