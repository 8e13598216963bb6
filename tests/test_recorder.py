"""Tests for comparison recording."""

import asyncio

import pytest

from diverank.core.errors import (
    DuplicateComparisonError,
    SameItemComparisonError,
    UnknownItemError,
)
from diverank.models import DiveSite


async def _site(store, site_id: int) -> DiveSite:
    site = await store.sites.get_by_id(site_id)
    assert site is not None
    return site


class TestRecordComparison:
    """Tests for the happy path of a vote."""

    async def test_equal_ratings(self, service, store, make_sites):
        """Test two 1500 sites resolve to 1516 / 1484."""
        await make_sites(1500, 1500)

        comparison = await service.record_comparison(1, 2, "u1")

        winner = await _site(store, 1)
        loser = await _site(store, 2)
        assert comparison.points_changed == 16
        assert comparison.pair_key == "1-2"
        assert comparison.actor_id == "u1"
        assert (winner.rating, winner.wins, winner.losses) == (1516, 1, 0)
        assert (loser.rating, loser.wins, loser.losses) == (1484, 0, 1)

    async def test_history_row_persisted(self, service, make_sites):
        await make_sites(1500, 1500)

        comparison = await service.record_comparison(2, 1, "u1")

        history = await service.actor_history("u1")
        assert [c.id for c in history] == [comparison.id]
        assert history[0].winner_id == 2
        assert history[0].loser_id == 1
        assert history[0].pair_key == "1-2"

    async def test_zero_sum(self, service, store, make_sites):
        """Test the rating sum is unchanged by any number of votes."""
        await make_sites(1500, 1620, 1410, 1388)
        votes = [(1, 2, "u1"), (3, 2, "u1"), (4, 1, "u2"), (2, 4, None), (3, 1, None)]
        for winner, loser, actor in votes:
            await service.record_comparison(winner, loser, actor)

        sites = await store.sites.list_all()
        assert sum(site.rating for site in sites) == 1500 + 1620 + 1410 + 1388
        assert sum(site.wins for site in sites) == len(votes)
        assert sum(site.losses for site in sites) == len(votes)

    async def test_upset_moves_more_points(self, service, make_sites):
        """Test an underdog win is worth more than a favourite win."""
        await make_sites(1400, 1600, 1400, 1600)

        upset = await service.record_comparison(1, 2, "u1")
        expected = await service.record_comparison(4, 3, "u1")

        assert upset.points_changed > 16 > expected.points_changed


class TestRejectedComparisons:
    """Tests for votes that must not change anything."""

    @pytest.mark.parametrize(("winner", "loser"), [(1, 2), (2, 1)])
    async def test_duplicate_in_either_order(self, service, store, make_sites, winner, loser):
        """Test a second vote on the same pair is rejected without side effects."""
        await make_sites(1500, 1500)
        await service.record_comparison(1, 2, "u1")

        with pytest.raises(DuplicateComparisonError, match="Already voted on matchup 1-2"):
            await service.record_comparison(winner, loser, "u1")

        assert (await _site(store, 1)).rating == 1516
        assert (await _site(store, 2)).rating == 1484
        assert len(await service.actor_history("u1")) == 1

    async def test_same_item(self, service, make_sites):
        await make_sites(1500, 1500)
        with pytest.raises(SameItemComparisonError):
            await service.record_comparison(1, 1, "u1")

    async def test_unknown_item(self, service, store, make_sites):
        """Test a vote naming a missing site writes nothing."""
        await make_sites(1500, 1500)

        with pytest.raises(UnknownItemError) as exc_info:
            await service.record_comparison(1, 99, "u1")

        assert exc_info.value.missing_ids == [99]
        assert (await _site(store, 1)).rating == 1500
        assert (await _site(store, 1)).wins == 0
        assert await service.actor_history("u1") == []

    async def test_anonymous_repeats_allowed(self, service, store, make_sites):
        """Test anonymous votes are never treated as duplicates."""
        await make_sites(1500, 1500)

        first = await service.record_comparison(1, 2)
        second = await service.record_comparison(1, 2)

        assert first.id != second.id
        assert first.actor_id is None
        assert (await _site(store, 1)).wins == 2

    async def test_other_actor_may_vote_same_pair(self, service, make_sites):
        await make_sites(1500, 1500)
        await service.record_comparison(1, 2, "u1")

        comparison = await service.record_comparison(2, 1, "u2")

        assert comparison.actor_id == "u2"


@pytest.mark.parametrize("config", ["sqlite", "duckdb"], indirect=True)
class TestConcurrentComparisons:
    """Tests for simultaneous submissions on each storage backend."""

    async def test_identical_submissions_commit_once(self, service, store, make_sites):
        """Test racing duplicates leave exactly one row and one rating change."""
        await make_sites(1500, 1500)

        results = await asyncio.gather(
            *(service.record_comparison(1, 2, "u1") for _ in range(6)),
            return_exceptions=True,
        )

        recorded = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, BaseException)]
        assert len(recorded) == 1
        assert all(isinstance(r, DuplicateComparisonError) for r in rejected)
        assert len(await service.actor_history("u1")) == 1
        assert (await _site(store, 1)).rating == 1516
        assert (await _site(store, 1)).wins == 1

    async def test_shared_site_no_lost_update(self, service, store, make_sites):
        """Test votes touching the same site concurrently all land."""
        await make_sites(1500, 1500, 1500, 1500)

        await asyncio.gather(
            service.record_comparison(1, 2, "u1"),
            service.record_comparison(1, 3, "u2"),
            service.record_comparison(4, 1, "u3"),
        )

        site = await _site(store, 1)
        sites = await store.sites.list_all()
        assert (site.wins, site.losses) == (2, 1)
        assert sum(s.rating for s in sites) == 6000
        assert sum(s.wins for s in sites) == 3

    async def test_mixed_race(self, service, store, make_sites):
        """Test a duplicate racing unrelated votes on a shared site."""
        await make_sites(1500, 1500, 1500, 1500)

        results = await asyncio.gather(
            service.record_comparison(1, 2, "u1"),
            service.record_comparison(1, 3, "u2"),
            service.record_comparison(4, 1, "u3"),
            service.record_comparison(1, 2, "u4"),
            service.record_comparison(2, 1, "u1"),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateComparisonError)
        assert errors[0].actor_id == "u1"
        sites = await store.sites.list_all()
        assert sum(s.wins for s in sites) == 4
        assert sum(s.rating for s in sites) == 6000

    async def test_concurrent_reads_and_writes(self, service, make_sites):
        """Test selection and ranking calls interleaved with votes all succeed."""
        await make_sites(1500, 1500, 1500)

        results = await asyncio.gather(
            service.select_pair("u1"),
            service.record_comparison(1, 2, "u2"),
            service.get_rankings(),
            service.select_pair(),
            service.record_comparison(3, 1, "u3"),
        )

        assert results[1].points_changed > 0
        assert len(results[2]) == 3


class TestHasVoted:
    """Tests for the vote-existence check."""

    async def test_has_voted(self, service, make_sites):
        await make_sites(1500, 1500, 1500)
        await service.record_comparison(1, 2, "u1")

        assert await service.has_voted("u1", 2, 1)
        assert not await service.has_voted("u1", 1, 3)
        assert not await service.has_voted("u2", 1, 2)
