"""Matchup selection for DiveRank.

A matchup is an unordered pair of dive sites the actor has not voted on yet.
When the previous round produced a winner (the "champion"), the champion
stays on its side of the screen and faces a fresh challenger for as long as
one remains.
"""

from __future__ import annotations

import itertools
import random
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import structlog

from diverank.core.errors import AllMatchupsCompletedError, InsufficientCatalogError
from diverank.models import DiveSite, pair_key

if TYPE_CHECKING:
    from diverank.services.storage import DiveRankStore

logger = structlog.get_logger()

MIN_SITES_FOR_MATCHUP = 2

Side = Literal["A", "B"]
_SIDE_ALIASES: dict[str, Side] = {"a": "A", "left": "A", "b": "B", "right": "B"}


@dataclass(frozen=True)
class ChampionHint:
    """Client-supplied winner of the previous round.

    Untrusted: the selector re-checks the champion against the catalog and
    the comparison history on every call.

    Attributes:
        site_id: Id of the site that won the last comparison.
        side: Side the champion was shown on ("A" = left, "B" = right).
    """

    site_id: int
    side: Side = "A"

    @classmethod
    def parse(cls, site_id: int, side: str) -> ChampionHint:
        """Build a hint from a raw side value ("A"/"B" or "left"/"right")."""
        normalized = _SIDE_ALIASES.get(side.strip().lower())
        if normalized is None:
            msg = f"Unknown champion side {side!r}; expected A, B, left or right"
            raise ValueError(msg)
        return cls(site_id=site_id, side=normalized)


@dataclass(frozen=True)
class Matchup:
    """Two distinct dive sites to present, A on the left and B on the right."""

    site_a: DiveSite
    site_b: DiveSite

    @property
    def key(self) -> str:
        return pair_key(self.site_a.id, self.site_b.id)


def total_pairs(site_count: int) -> int:
    """Number of distinct unordered pairs in a catalog of ``site_count`` sites."""
    return site_count * (site_count - 1) // 2


def iter_pairs(site_ids: Iterable[int]) -> Iterator[tuple[int, int]]:
    """Yield every unordered pair once, each as (low_id, high_id)."""
    return itertools.combinations(sorted(site_ids), 2)


def unvoted_pairs(site_ids: Iterable[int], voted_keys: set[str]) -> list[tuple[int, int]]:
    """Pairs whose normalized key is not in ``voted_keys``."""
    return [(a, b) for a, b in iter_pairs(site_ids) if pair_key(a, b) not in voted_keys]


def place_champion(champion: DiveSite, opponent: DiveSite, side: Side) -> Matchup:
    """Keep the champion on the side it won from."""
    if side == "A":
        return Matchup(site_a=champion, site_b=opponent)
    return Matchup(site_a=opponent, site_b=champion)


class PairSelector:
    """Choose the next matchup for an actor (or an anonymous caller).

    Authenticated actors never see a pair twice and eventually exhaust the
    catalog. Anonymous callers only avoid pairs with no global history and
    fall back to any random pair, so they never run out.
    """

    def __init__(self, store: DiveRankStore, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng or random.Random()  # noqa: S311

    async def select(
        self,
        actor_id: str | None = None,
        champion: ChampionHint | None = None,
    ) -> Matchup:
        """Select the next matchup.

        Args:
            actor_id: Opaque id of an authenticated actor, None if anonymous.
            champion: Optional winner of the previous round.

        Returns:
            Matchup of two distinct sites.

        Raises:
            InsufficientCatalogError: Fewer than two sites exist.
            AllMatchupsCompletedError: The actor has voted on every pair.
        """
        sites = await self._store.sites.list_all()
        if len(sites) < MIN_SITES_FOR_MATCHUP:
            raise InsufficientCatalogError(len(sites))

        by_id = {site.id: site for site in sites}
        champion_site = self._resolve_champion(champion, by_id)

        if actor_id is None:
            matchup = await self._select_anonymous(sites, champion, champion_site)
        else:
            matchup = await self._select_for_actor(actor_id, sites, champion, champion_site)

        logger.info(
            "pair_selected",
            actor=actor_id,
            site_a=matchup.site_a.id,
            site_b=matchup.site_b.id,
            champion=champion_site.id if champion_site else None,
        )
        return matchup

    async def _select_for_actor(
        self,
        actor_id: str,
        sites: Sequence[DiveSite],
        champion: ChampionHint | None,
        champion_site: DiveSite | None,
    ) -> Matchup:
        total = total_pairs(len(sites))
        voted_count = await self._store.comparisons.count_distinct_pairs_for_actor(actor_id)
        if voted_count >= total:
            logger.info("matchups_exhausted", actor=actor_id, total=total)
            raise AllMatchupsCompletedError(actor_id, total)

        if champion is not None and champion_site is not None:
            faced = await self._store.comparisons.list_opponents_faced(champion_site.id, actor_id)
            matchup = self._challenge(champion_site, champion.side, sites, faced)
            if matchup is not None:
                return matchup

        voted = await self._store.comparisons.list_pair_keys_for_actor(actor_id)
        remaining = unvoted_pairs((site.id for site in sites), voted)
        if not remaining:
            logger.info("matchups_exhausted", actor=actor_id, total=total)
            raise AllMatchupsCompletedError(actor_id, total)
        return self._pick_pair(remaining, {site.id: site for site in sites})

    async def _select_anonymous(
        self,
        sites: Sequence[DiveSite],
        champion: ChampionHint | None,
        champion_site: DiveSite | None,
    ) -> Matchup:
        if champion is not None and champion_site is not None:
            faced = await self._store.comparisons.list_opponents_faced(champion_site.id)
            matchup = self._challenge(champion_site, champion.side, sites, faced)
            if matchup is not None:
                return matchup

        seen = await self._store.comparisons.list_pair_keys()
        remaining = unvoted_pairs((site.id for site in sites), seen)
        if remaining:
            return self._pick_pair(remaining, {site.id: site for site in sites})

        # Every pair has history: repeat a random one
        site_a, site_b = self._rng.sample(list(sites), 2)
        return Matchup(site_a=site_a, site_b=site_b)

    def _resolve_champion(
        self, champion: ChampionHint | None, by_id: dict[int, DiveSite]
    ) -> DiveSite | None:
        if champion is None:
            return None
        site = by_id.get(champion.site_id)
        if site is None:
            logger.warning("champion_hint_ignored", site_id=champion.site_id)
        return site

    def _challenge(
        self,
        champion_site: DiveSite,
        side: Side,
        sites: Sequence[DiveSite],
        faced: set[int],
    ) -> Matchup | None:
        """Pair the champion with a random opponent it has not faced, if any."""
        candidates = [
            site for site in sites if site.id != champion_site.id and site.id not in faced
        ]
        if not candidates:
            return None
        return place_champion(champion_site, self._rng.choice(candidates), side)

    def _pick_pair(self, pairs: list[tuple[int, int]], by_id: dict[int, DiveSite]) -> Matchup:
        low, high = self._rng.choice(pairs)
        if self._rng.random() < 0.5:
            low, high = high, low
        return Matchup(site_a=by_id[low], site_b=by_id[high])
