from .comparison_repository import ComparisonRepository
from .repository import AsyncRepository
from .site_repository import DiveSiteRepository
from .store import DiveRankStore

__all__ = ["AsyncRepository", "ComparisonRepository", "DiveRankStore", "DiveSiteRepository"]
