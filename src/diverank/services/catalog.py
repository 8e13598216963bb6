"""Dive-site catalog loading, seeding and browsing by region."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pydantic
import structlog
import yaml

from diverank.core.errors import CatalogError
from diverank.models import DiveSite, DiveSiteSeed

if TYPE_CHECKING:
    from diverank.services.storage import DiveRankStore

logger = structlog.get_logger()

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "dive_sites.yaml"


def load_catalog(path: str | Path | None = None) -> list[DiveSiteSeed]:
    """Load and validate a YAML dive-site catalog.

    The file holds either a list of sites or a mapping with a ``dive_sites``
    list. Without a path the packaged catalog is used.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist.
        CatalogError: If entries are malformed or ids repeat.
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    if not catalog_path.exists():
        msg = f"Catalog file not found: {catalog_path}"
        raise FileNotFoundError(msg)

    with catalog_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    entries = data.get("dive_sites") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise CatalogError(str(catalog_path), "expected a list of dive sites")

    try:
        seeds = [DiveSiteSeed.model_validate(entry) for entry in entries]
    except pydantic.ValidationError as e:
        raise CatalogError(str(catalog_path), str(e)) from e

    seen: set[int] = set()
    for seed in seeds:
        if seed.id in seen:
            raise CatalogError(str(catalog_path), f"duplicate site id {seed.id}")
        seen.add(seed.id)
    return seeds


async def seed_catalog(store: DiveRankStore, path: str | Path | None = None) -> tuple[int, int]:
    """Insert or refresh catalog sites. Returns (created, updated)."""
    seeds = load_catalog(path)
    created, updated = await store.sites.upsert_sites(seeds)
    logger.info("catalog_seeded", created=created, updated=updated)
    return created, updated


@dataclass(frozen=True)
class Region:
    """Dive sites sharing a location, best rated first."""

    name: str
    sites: list[DiveSite]

    @property
    def description(self) -> str:
        return f"Dive sites in {self.name}"


def group_by_region(sites: Iterable[DiveSite]) -> list[Region]:
    """Group sites by ``location``; regions sorted by name."""
    by_location: dict[str, list[DiveSite]] = defaultdict(list)
    for site in sites:
        by_location[site.location].append(site)
    return [
        Region(name=name, sites=sorted(members, key=lambda site: (-site.rating, site.id)))
        for name, members in sorted(by_location.items())
    ]
