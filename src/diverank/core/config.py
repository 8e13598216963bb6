"""Configuration schemas and loading for DiveRank."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

DATABASE_URL_ENV = "DIVERANK_DATABASE_URL"
MAX_QUERY_LIMIT = 1000


class EloConfig(BaseModel):
    """Elo rating parameters."""

    initial_rating: float = 1500.0
    k_factor: float = Field(default=32.0, gt=0)


class RecorderConfig(BaseModel):
    """Comparison recording behaviour.

    Attributes:
        max_attempts: How many times a comparison is attempted when the
            store reports a write conflict or a site changed concurrently.
    """

    max_attempts: int = Field(default=5, ge=1)


class DiveRankConfig(BaseModel):
    """Complete DiveRank configuration."""

    database_url: str | None = None
    data_dir: str = "./data"
    catalog_path: str | None = None
    activity_limit: int = Field(default=10, ge=1, le=MAX_QUERY_LIMIT)
    seed: int | None = None
    elo: EloConfig = Field(default_factory=EloConfig)
    recorder: RecorderConfig = Field(default_factory=RecorderConfig)

    def get_database_url(self) -> str:
        """Get database URL from config, environment, or the data directory."""
        url = self.database_url or os.environ.get(DATABASE_URL_ENV)
        if url:
            return url
        return f"duckdb:///{Path(self.data_dir) / 'diverank.duckdb'}"


def load_config(path: str | Path) -> DiveRankConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated DiveRankConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    return DiveRankConfig.model_validate(data or {})
