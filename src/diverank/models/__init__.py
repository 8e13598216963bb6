from .comparison import ActivityEntry, Comparison, normalize_pair, pair_key
from .dive_site import DiveSite, DiveSiteSeed, RankedDiveSite

__all__ = [
    "ActivityEntry",
    "Comparison",
    "DiveSite",
    "DiveSiteSeed",
    "RankedDiveSite",
    "normalize_pair",
    "pair_key",
]
