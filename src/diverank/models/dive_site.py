from datetime import UTC, datetime

from sqlalchemy import Column, Double
from sqlmodel import JSON, Field, SQLModel


class DiveSite(SQLModel, table=True):
    """A ratable dive site.

    Created when the catalog is seeded; rating and counters are only changed
    by the comparison recorder and the offline replay.
    """

    __tablename__ = "dive_sites"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str
    location: str = ""
    types: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    description: str = ""
    image_url: str = ""
    depth_min: int = 0
    depth_max: int = 0
    difficulty: str = "Intermediate"
    rating: float = Field(default=1500.0, sa_type=Double)
    wins: int = 0
    losses: int = 0
    previous_rank: int = 0
    current_rank: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RankedDiveSite(SQLModel):
    """Leaderboard row: a dive site with its rank and signed rank change."""

    id: int
    name: str
    location: str
    rating: float
    wins: int
    losses: int
    rank: int
    rank_change: int = 0


class DiveSiteSeed(SQLModel):
    """Catalog entry used to create or refresh a dive site."""

    id: int
    name: str = Field(min_length=1)
    location: str = ""
    types: list[str] = Field(default_factory=list)
    description: str = ""
    image_url: str = ""
    depth_min: int = Field(default=0, ge=0)
    depth_max: int = Field(default=0, ge=0)
    difficulty: str = "Intermediate"
