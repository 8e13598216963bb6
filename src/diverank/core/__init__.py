"""Core configuration and errors for DiveRank."""

from diverank.core.config import (
    MAX_QUERY_LIMIT,
    DiveRankConfig,
    EloConfig,
    RecorderConfig,
    load_config,
)
from diverank.core.errors import (
    AllMatchupsCompletedError,
    CatalogError,
    ConfigurationError,
    DiveRankError,
    DuplicateComparisonError,
    InsufficientCatalogError,
    SameItemComparisonError,
    StaleRatingError,
    UnknownItemError,
)

__all__ = [
    "MAX_QUERY_LIMIT",
    "DiveRankConfig",
    "EloConfig",
    "RecorderConfig",
    "load_config",
    "AllMatchupsCompletedError",
    "CatalogError",
    "ConfigurationError",
    "DiveRankError",
    "DuplicateComparisonError",
    "InsufficientCatalogError",
    "SameItemComparisonError",
    "StaleRatingError",
    "UnknownItemError",
]
