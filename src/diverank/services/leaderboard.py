"""Leaderboard materialization with rank-change indicators."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import SQLAlchemyError

from diverank.models import DiveSite, RankedDiveSite

if TYPE_CHECKING:
    from diverank.services.storage import DiveSiteRepository

logger = structlog.get_logger()


def compute_rankings(sites: Sequence[DiveSite]) -> list[RankedDiveSite]:
    """Rank sites by rating (descending) and diff against the stored rank.

    A positive ``rank_change`` means the site moved up since the leaderboard
    was last materialized. Sites without a stored rank report 0. Equal
    ratings are ordered by id.
    """
    ordered = sorted(sites, key=lambda site: (-site.rating, site.id))
    rankings: list[RankedDiveSite] = []
    for rank, site in enumerate(ordered, start=1):
        previous = site.previous_rank or 0
        rankings.append(
            RankedDiveSite(
                id=site.id,
                name=site.name,
                location=site.location,
                rating=site.rating,
                wins=site.wins,
                losses=site.losses,
                rank=rank,
                rank_change=previous - rank if previous > 0 else 0,
            )
        )
    return rankings


class RankingView:
    """Produce the leaderboard and remember ranks for the next diff."""

    def __init__(self, sites: DiveSiteRepository) -> None:
        self._sites = sites

    async def get_rankings(self) -> list[RankedDiveSite]:
        """Get the ordered leaderboard.

        The rank snapshot write is best effort: if it fails the rankings are
        still returned and the next call diffs against older ranks.
        """
        rankings = compute_rankings(await self._sites.list_all())
        try:
            await self._sites.save_rank_snapshot({entry.id: entry.rank for entry in rankings})
        except SQLAlchemyError as e:
            logger.warning("rank_snapshot_failed", error=str(e))
        return rankings
