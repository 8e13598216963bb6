"""Tests for Elo rating calculations."""

import pytest

from diverank.ranking import EloModel, RatingModel, create_rating_model
from diverank.ranking.elo import apply_elo, calculate_elo_change, calculate_expected_score


class TestCalculateExpectedScore:
    """Tests for expected win probability calculation."""

    @pytest.mark.parametrize("rating", [0, 1500, 2400, -300])
    def test_equal_ratings(self, rating):
        """Test equal ratings produce 0.5 expected."""
        assert calculate_expected_score(rating, rating) == 0.5

    def test_higher_rating_higher_expected(self):
        """Test higher rated site has higher expected score."""
        expected = calculate_expected_score(1600, 1400)
        assert expected > 0.5
        assert expected < 1.0

    def test_lower_rating_lower_expected(self):
        """Test lower rated site has lower expected score."""
        expected = calculate_expected_score(1400, 1600)
        assert 0.0 < expected < 0.5

    def test_400_point_difference(self):
        """Test 400 point difference produces ~91% expected."""
        # 10^(400/400) = 10, so expected = 1/(1+0.1) ≈ 0.909
        assert calculate_expected_score(1900, 1500) == pytest.approx(0.909, abs=0.01)

    def test_extreme_gap_does_not_overflow(self):
        """Test huge rating gaps saturate instead of raising."""
        assert calculate_expected_score(0, 200_000) == 0.0
        assert calculate_expected_score(200_000, 0) == 1.0


class TestCalculateEloChange:
    """Tests for the integer rating delta."""

    def test_equal_ratings_half_k(self):
        """Test equal ratings move half the K-factor."""
        assert calculate_elo_change(1500, 1500) == 16

    def test_upset_win_larger_change(self):
        """Test underdog win moves more than half of K."""
        assert calculate_elo_change(1400, 1600) > 16

    def test_expected_win_smaller_change(self):
        """Test favourite win moves less than half of K."""
        assert calculate_elo_change(1600, 1400) < 16

    def test_rounds_half_up(self):
        """Test 0.5 rounds up rather than to even."""
        assert calculate_elo_change(1500, 1500, k_factor=1) == 1

    def test_never_negative(self):
        """Test delta is non-negative even for hopeless favourites."""
        assert calculate_elo_change(200_000, 0) == 0
        assert calculate_elo_change(0, 200_000) == 32

    def test_returns_int(self):
        assert isinstance(calculate_elo_change(1523.0, 1477.0), int)


class TestApplyElo:
    """Tests for zero-sum updates."""

    @pytest.mark.parametrize(
        ("winner", "loser"), [(1500, 1500), (1600, 1400), (1400, 1600), (-50, 20)]
    )
    def test_zero_sum(self, winner, loser):
        """Test winner gain equals loser loss."""
        update = apply_elo(winner, loser)
        assert update.winner_rating - winner == -(update.loser_rating - loser)
        assert update.winner_rating - winner == update.points_changed

    def test_ratings_may_go_negative(self):
        """Test ratings are not clamped at zero."""
        update = apply_elo(10, 5)
        assert update.loser_rating < 0


class TestEloModel:
    """Tests for EloModel."""

    def test_implements_protocol(self):
        assert isinstance(EloModel(), RatingModel)

    def test_custom_k_factor(self):
        """Test K-factor scales the delta."""
        assert EloModel(k_factor=64).delta(1500, 1500) == 32

    def test_update_matches_functions(self):
        model = EloModel()
        assert model.update(1600, 1400) == apply_elo(1600, 1400)
        assert model.expected_score(1600, 1400) == calculate_expected_score(1600, 1400)

    def test_created_from_config(self, config):
        config.elo.k_factor = 16
        config.elo.initial_rating = 1200
        model = create_rating_model(config)
        assert model.initial_rating == 1200
        assert model.delta(1500, 1500) == 8
