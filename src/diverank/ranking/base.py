"""Base protocol for rating models in DiveRank."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from diverank.ranking.elo import EloUpdate


@runtime_checkable
class RatingModel(Protocol):
    """Protocol for pure rating arithmetic.

    Implementations must be side-effect free: the recorder and the replay
    own all persistence.
    """

    initial_rating: float

    def expected_score(self, rating_a: float, rating_b: float) -> float:
        """Probability that a site rated ``rating_a`` beats one rated ``rating_b``."""
        ...

    def delta(self, winner_rating: float, loser_rating: float) -> int:
        """Non-negative points moved from loser to winner."""
        ...

    def update(self, winner_rating: float, loser_rating: float) -> EloUpdate:
        """New ratings for both sides plus the delta applied."""
        ...
