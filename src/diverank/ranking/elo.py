"""Elo rating calculations for DiveRank."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_RATING = 1500.0
DEFAULT_K_FACTOR = 32.0

# 10**x overflows a float just above x = 308
_MAX_EXPONENT = 300.0


@dataclass(frozen=True)
class EloUpdate:
    """Result of resolving one comparison.

    Attributes:
        winner_rating: Winner's rating after the comparison.
        loser_rating: Loser's rating after the comparison.
        points_changed: Points moved from loser to winner.
    """

    winner_rating: float
    loser_rating: float
    points_changed: int


def calculate_expected_score(rating_a: float, rating_b: float) -> float:
    """Calculate the probability that A beats B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of site A.
        rating_b: Rating of site B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    exponent = (rating_b - rating_a) / 400
    if exponent > _MAX_EXPONENT:
        return 0.0
    return 1.0 / (1.0 + 10**exponent)


def calculate_elo_change(
    winner_rating: float,
    loser_rating: float,
    k_factor: float = DEFAULT_K_FACTOR,
) -> int:
    """Calculate the points the winner gains and the loser gives up.

    Args:
        winner_rating: Current rating of the winner.
        loser_rating: Current rating of the loser.
        k_factor: Maximum possible adjustment per comparison.

    Returns:
        Non-negative integer delta, rounded half up.
    """
    expected = calculate_expected_score(winner_rating, loser_rating)
    return math.floor(k_factor * (1.0 - expected) + 0.5)


def apply_elo(
    winner_rating: float,
    loser_rating: float,
    k_factor: float = DEFAULT_K_FACTOR,
) -> EloUpdate:
    """Apply a zero-sum Elo update. Ratings are not clamped."""
    delta = calculate_elo_change(winner_rating, loser_rating, k_factor)
    return EloUpdate(
        winner_rating=winner_rating + delta,
        loser_rating=loser_rating - delta,
        points_changed=delta,
    )


class EloModel:
    """Elo rating model implementing the RatingModel protocol.

    Attributes:
        initial_rating: Rating a site is reset to before a replay.
        k_factor: K-factor for rating adjustments.
    """

    def __init__(
        self,
        initial_rating: float = DEFAULT_RATING,
        k_factor: float = DEFAULT_K_FACTOR,
    ) -> None:
        self.initial_rating = initial_rating
        self.k_factor = k_factor

    def expected_score(self, rating_a: float, rating_b: float) -> float:
        return calculate_expected_score(rating_a, rating_b)

    def delta(self, winner_rating: float, loser_rating: float) -> int:
        return calculate_elo_change(winner_rating, loser_rating, self.k_factor)

    def update(self, winner_rating: float, loser_rating: float) -> EloUpdate:
        return apply_elo(winner_rating, loser_rating, self.k_factor)
