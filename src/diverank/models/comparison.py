import uuid
from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def normalize_pair(site_a: int, site_b: int) -> tuple[int, int]:
    """Sort two site ids so (a, b) and (b, a) map to the same pair."""
    return (site_a, site_b) if site_a <= site_b else (site_b, site_a)


def pair_key(site_a: int, site_b: int) -> str:
    """Canonical ``"min-max"`` key of an unordered pair."""
    low, high = normalize_pair(site_a, site_b)
    return f"{low}-{high}"


class Comparison(SQLModel, table=True):
    """A resolved pairwise vote. Append-only."""

    __tablename__ = "comparisons"
    __table_args__ = (UniqueConstraint("actor_id", "pair_key", name="uq_comparison_actor_pair"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    winner_id: int = Field(index=True)
    loser_id: int = Field(index=True)
    pair_key: str = Field(index=True)
    points_changed: int
    actor_id: str | None = Field(default=None, index=True)  # None = anonymous
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)


class ActivityEntry(SQLModel):
    """A recent vote with dive-site names resolved."""

    id: str
    winner_name: str
    loser_name: str
    points_changed: int
    timestamp: datetime
    actor_id: str | None = None
