from .pairing import (
    MIN_SITES_FOR_MATCHUP,
    ChampionHint,
    Matchup,
    PairSelector,
    iter_pairs,
    place_champion,
    total_pairs,
    unvoted_pairs,
)
from .recorder import MatchRecorder
from .service import ActorProgress, MatchService

__all__ = [
    "MIN_SITES_FOR_MATCHUP",
    "ActorProgress",
    "ChampionHint",
    "MatchRecorder",
    "MatchService",
    "Matchup",
    "PairSelector",
    "iter_pairs",
    "place_champion",
    "total_pairs",
    "unvoted_pairs",
]
