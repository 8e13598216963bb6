"""Tests for catalog loading and seeding."""

import pytest
import yaml

from diverank.core.errors import CatalogError
from diverank.models import DiveSite
from diverank.services.catalog import group_by_region, load_catalog


def _write(tmp_path, data, name="catalog.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadCatalog:
    """Tests for catalog parsing and validation."""

    def test_packaged_catalog(self):
        seeds = load_catalog()
        assert len(seeds) == 43
        assert len({seed.id for seed in seeds}) == 43
        assert all(seed.name for seed in seeds)

    def test_list_form(self, tmp_path):
        path = _write(tmp_path, [{"id": 1, "name": "Blue Hole"}, {"id": 2, "name": "Sipadan"}])
        assert [seed.name for seed in load_catalog(path)] == ["Blue Hole", "Sipadan"]

    def test_mapping_form(self, tmp_path):
        path = _write(
            tmp_path,
            {"dive_sites": [{"id": 3, "name": "Thistlegorm", "types": ["Wreck"], "depth_max": 32}]},
        )

        seeds = load_catalog(path)

        assert seeds[0].types == ["Wreck"]
        assert seeds[0].depth_max == 32

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "missing.yaml")

    def test_not_a_list(self, tmp_path):
        path = _write(tmp_path, {"sites": "nope"})
        with pytest.raises(CatalogError, match="expected a list"):
            load_catalog(path)

    def test_duplicate_id(self, tmp_path):
        path = _write(tmp_path, [{"id": 1, "name": "A"}, {"id": 1, "name": "B"}])
        with pytest.raises(CatalogError, match="duplicate site id 1"):
            load_catalog(path)

    def test_invalid_entry(self, tmp_path):
        path = _write(tmp_path, [{"id": 1, "name": ""}])
        with pytest.raises(CatalogError):
            load_catalog(path)


class TestSeedCatalog:
    """Tests for seeding the store."""

    async def test_seed_packaged_catalog(self, service, store):
        created, updated = await service.seed_catalog()

        assert (created, updated) == (43, 0)
        assert await store.sites.count() == 43
        assert all(site.rating == 1500 for site in await store.sites.list_all())

    async def test_reseed_keeps_ratings(self, service, store):
        """Test reseeding refreshes descriptions but never ratings or counters."""
        await service.seed_catalog()
        await service.record_comparison(1, 2, "u1")

        created, updated = await service.seed_catalog()

        assert (created, updated) == (0, 43)
        site = await store.sites.get_by_id(1)
        assert site.rating == 1516
        assert site.wins == 1

    async def test_seed_custom_catalog(self, service, store, tmp_path):
        path = _write(tmp_path, [{"id": 10, "name": "Manta Point", "location": "Bali"}])

        await service.seed_catalog(path)

        site = await store.sites.get_by_id(10)
        assert (site.name, site.location) == ("Manta Point", "Bali")


class TestRegions:
    """Tests for browsing the catalog by location."""

    def test_group_by_region(self):
        sites = [
            DiveSite(id=1, name="A", location="Similan", rating=1500),
            DiveSite(id=2, name="B", location="Surin", rating=1500),
            DiveSite(id=3, name="C", location="Similan", rating=1600),
            DiveSite(id=4, name="D", location="Similan", rating=1500),
        ]

        regions = group_by_region(sites)

        assert [region.name for region in regions] == ["Similan", "Surin"]
        assert [site.id for site in regions[0].sites] == [3, 1, 4]
        assert regions[1].description == "Dive sites in Surin"

    def test_empty(self):
        assert group_by_region([]) == []

    async def test_sites_by_region(self, service):
        await service.seed_catalog()

        regions = await service.sites_by_region()

        assert sum(len(region.sites) for region in regions) == 43
        assert [region.name for region in regions] == sorted(region.name for region in regions)
