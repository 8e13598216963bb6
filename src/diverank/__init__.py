"""DiveRank.

Rank dive sites by pairwise votes: per-user matchmaking that never repeats
a pair, a continuing champion, and Elo ratings updated once per vote.
"""

from diverank.core.config import DiveRankConfig, load_config
from diverank.services.match import ChampionHint, MatchService
from diverank.services.storage import DiveRankStore

__version__ = "0.1.0"
__all__ = [
    "ChampionHint",
    "DiveRankConfig",
    "DiveRankStore",
    "MatchService",
    "__version__",
    "load_config",
]
