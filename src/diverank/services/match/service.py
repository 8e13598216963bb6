"""Match service: the entry point the request layer calls."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path

import structlog

from diverank.core.config import MAX_QUERY_LIMIT, DiveRankConfig
from diverank.models import ActivityEntry, Comparison, RankedDiveSite
from diverank.ranking import create_rating_model
from diverank.services.catalog import Region, group_by_region, seed_catalog
from diverank.services.leaderboard import RankingView
from diverank.services.replay import ReplaySummary, recompute_ratings
from diverank.services.storage import DiveRankStore

from .pairing import ChampionHint, Matchup, PairSelector, total_pairs
from .recorder import MatchRecorder

logger = structlog.get_logger()


@dataclass(frozen=True)
class ActorProgress:
    """How far an actor is through the catalog's pairs."""

    voted_pairs: int
    total_pairs: int

    @property
    def remaining(self) -> int:
        return max(self.total_pairs - self.voted_pairs, 0)

    @property
    def completed(self) -> bool:
        return self.voted_pairs >= self.total_pairs

    @property
    def percent(self) -> float:
        if self.total_pairs == 0:
            return 100.0
        return round(min(self.voted_pairs, self.total_pairs) / self.total_pairs * 100, 1)


class MatchService:
    """Orchestrates matchmaking, vote recording and the leaderboard.

    Wires the pair selector, recorder and ranking view to one store and one
    rating model so callers only deal with site ids and actor ids.
    """

    def __init__(
        self,
        config: DiveRankConfig,
        store: DiveRankStore,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize match service.

        Args:
            config: DiveRank configuration.
            store: Storage layer for sites and comparisons.
            rng: Random source for pair selection (defaults to one seeded
                from ``config.seed``).
        """
        self.config = config
        self.store = store
        self.model = create_rating_model(config)
        self.selector = PairSelector(store, rng or random.Random(config.seed))  # noqa: S311
        self.recorder = MatchRecorder(store, self.model, config.recorder.max_attempts)
        self.ranking_view = RankingView(store.sites)

    # ==================== Core operations ====================

    async def select_pair(
        self,
        actor_id: str | None = None,
        champion: ChampionHint | None = None,
    ) -> Matchup:
        """Next matchup for the actor; see PairSelector.select."""
        return await self.selector.select(actor_id, champion)

    async def record_comparison(
        self,
        winner_id: int,
        loser_id: int,
        actor_id: str | None = None,
    ) -> Comparison:
        """Resolve a vote; see MatchRecorder.record."""
        return await self.recorder.record(winner_id, loser_id, actor_id)

    async def get_rankings(self) -> list[RankedDiveSite]:
        """Leaderboard ordered by rating with rank changes."""
        return await self.ranking_view.get_rankings()

    async def sites_by_region(self) -> list[Region]:
        """Catalog grouped by location, regions by name and sites by rating."""
        return group_by_region(await self.store.sites.list_all())

    # ==================== Actor history ====================

    async def has_voted(self, actor_id: str, site_a: int, site_b: int) -> bool:
        """Whether a (possibly timed-out) vote on this pair was committed."""
        return await self.store.comparisons.has_voted(actor_id, site_a, site_b)

    async def actor_progress(self, actor_id: str) -> ActorProgress:
        site_count = await self.store.sites.count()
        voted = await self.store.comparisons.count_distinct_pairs_for_actor(actor_id)
        return ActorProgress(voted_pairs=voted, total_pairs=total_pairs(site_count))

    async def actor_history(self, actor_id: str) -> list[Comparison]:
        return await self.store.comparisons.list_for_actor(actor_id)

    async def reset_actor_history(self, actor_id: str) -> int:
        """Delete the actor's comparisons. Ratings are left as they are."""
        removed = await self.store.comparisons.delete_for_actor(actor_id)
        logger.info("actor_history_reset", actor=actor_id, removed=removed)
        return removed

    async def recent_activity(self, limit: int | None = None) -> list[ActivityEntry]:
        """Latest votes with site names, newest first."""
        limit = min(limit or self.config.activity_limit, MAX_QUERY_LIMIT)
        comparisons = await self.store.comparisons.list_recent(limit)
        names = {site.id: site.name for site in await self.store.sites.list_all()}
        return [
            ActivityEntry(
                id=comparison.id,
                winner_name=names.get(comparison.winner_id, f"#{comparison.winner_id}"),
                loser_name=names.get(comparison.loser_id, f"#{comparison.loser_id}"),
                points_changed=comparison.points_changed,
                timestamp=comparison.timestamp,
                actor_id=comparison.actor_id,
            )
            for comparison in comparisons
        ]

    # ==================== Administration ====================

    async def seed_catalog(self, path: str | Path | None = None) -> tuple[int, int]:
        return await seed_catalog(self.store, path or self.config.catalog_path)

    async def recompute_ratings(self) -> ReplaySummary:
        """Rebuild ratings from history. Offline operation."""
        return await recompute_ratings(self.store, self.model)
