"""Ranking module for DiveRank.

Provides the rating model protocol and the Elo implementation used to
resolve pairwise votes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diverank.ranking.base import RatingModel
from diverank.ranking.elo import (
    DEFAULT_K_FACTOR,
    DEFAULT_RATING,
    EloModel,
    EloUpdate,
    apply_elo,
    calculate_elo_change,
    calculate_expected_score,
)

if TYPE_CHECKING:
    from diverank.core.config import DiveRankConfig


def create_rating_model(config: DiveRankConfig) -> RatingModel:
    """Create the rating model described by config."""
    return EloModel(
        initial_rating=config.elo.initial_rating,
        k_factor=config.elo.k_factor,
    )


__all__ = [
    "DEFAULT_K_FACTOR",
    "DEFAULT_RATING",
    "EloModel",
    "EloUpdate",
    "RatingModel",
    "apply_elo",
    "calculate_elo_change",
    "calculate_expected_score",
    "create_rating_model",
]
