"""
Tests for the entity catalog, city pool and hierarchy builder.
"""

from dataclasses import replace

import pytest

from promo_datagen.errors import ConfigurationError
from promo_datagen.generation import (
    CityNamePool,
    EngagementWeights,
    Group,
    HierarchyBuilder,
    StoreHierarchy,
    default_catalog,
    format_store_id,
)
from promo_datagen.generation.hierarchy import group_label


class TestEntityCatalog:
    """Tests for EntityCatalog construction and validation."""

    def test_default_catalog_shape(self, catalog):
        """Default catalog has 34 products in 8 categories."""
        assert catalog.products_per_store == 34
        assert len(catalog.categories) == 8
        assert catalog.categories[0] == "featured_deals"
        assert len(catalog.group_templates) == 5

    def test_card_size_footprint(self, catalog):
        """Footprint is width x height."""
        size = catalog.get_card_size("3X2")
        assert (size.width, size.height, size.footprint) == (3, 2, 6)

    def test_unknown_card_size(self, catalog):
        """Looking up a missing card size is a configuration error."""
        with pytest.raises(ConfigurationError):
            catalog.get_card_size("9X9")

    def test_empty_products_rejected(self, catalog):
        """An empty product list fails at construction."""
        with pytest.raises(ConfigurationError, match="products"):
            replace(catalog, products=())

    def test_empty_deal_types_rejected(self, catalog):
        """An empty deal type list fails at construction."""
        with pytest.raises(ConfigurationError, match="deal_types"):
            replace(catalog, deal_types=(), group_templates=())

    def test_weights_must_sum_to_one(self, catalog):
        """Engagement weights must sum to 1."""
        with pytest.raises(ConfigurationError, match="sum to 1"):
            replace(catalog, weights=EngagementWeights(0.5, 0.5, 0.5))

    def test_unknown_deal_preference(self, catalog):
        """Templates may only prefer deal types the catalog offers."""
        with pytest.raises(ConfigurationError, match="unknown deal types"):
            replace(catalog, deal_types=("BOGO",))

    def test_with_products(self, catalog):
        """with_products() returns a trimmed copy."""
        small = catalog.with_products(catalog.products[:30])
        assert small.products_per_store == 30
        assert catalog.products_per_store == 34

    def test_week_multiplier_default(self, catalog):
        """Weeks without a configured variance use 1.0."""
        assert catalog.week_multiplier(40) == 1.0
        assert catalog.week_multiplier(36) == 0.90
        assert catalog.week_multiplier(12) == 1.0

    def test_independent_catalogs(self):
        """Two catalogs in one process do not share state."""
        a = default_catalog(banner="A-Mart")
        b = default_catalog(banner="B-Mart")
        a.week_variance[40] = 2.0
        assert b.week_multiplier(40) == 1.0


class TestCityNamePool:
    """Tests for CityNamePool."""

    def test_deterministic(self):
        """Same seed, same pool and sample."""
        a = CityNamePool(seed=5, pool_size=50)
        b = CityNamePool(seed=5, pool_size=50)
        assert a.cities == b.cities
        assert a.sample_cities(10) == b.sample_cities(10)

    def test_sample_distinct_when_possible(self):
        """Samples no larger than the pool have no repeats."""
        pool = CityNamePool(seed=1, pool_size=50)
        sample = pool.sample_cities(len(pool))
        assert len(set(sample)) == len(pool)

    def test_oversample_allowed(self):
        """Asking for more names than the pool holds still works."""
        pool = CityNamePool(seed=1, pool_size=10)
        assert len(pool.sample_cities(len(pool) * 3)) == len(pool) * 3

    def test_reset(self):
        """reset() replays the sample order."""
        pool = CityNamePool(seed=3, pool_size=30)
        first = pool.sample_cities(5)
        pool.reset()
        assert pool.sample_cities(5) == first


class TestHierarchyBuilder:
    """Tests for HierarchyBuilder."""

    def test_fifty_stores_five_groups(self, hierarchy_50):
        """50 stores split into 5 groups of 10."""
        assert hierarchy_50.store_count == 50
        assert hierarchy_50.group_count == 5
        assert {g.size for g in hierarchy_50.groups} == {10}

    def test_every_store_in_exactly_one_group(self, hierarchy_50):
        """Group membership partitions the store table."""
        members = [sid for g in hierarchy_50.groups for sid in g.store_ids]
        assert sorted(members) == sorted(hierarchy_50.store_ids)
        assert len(members) == len(set(members))

    def test_sequential_assignment(self, hierarchy_50):
        """Stores 1-10 go to GROUP_A, 11-20 to GROUP_B."""
        assert hierarchy_50.store_at(1).group_id == "GROUP_A"
        assert hierarchy_50.store_at(10).group_id == "GROUP_A"
        assert hierarchy_50.store_at(11).group_id == "GROUP_B"
        assert hierarchy_50.store_at(50).group_id == "GROUP_E"

    def test_templates_assigned_in_order(self, hierarchy_50):
        """Group i uses catalog template i."""
        keys = [g.template.key for g in hierarchy_50.groups]
        assert keys == ["URBAN_PREMIUM", "SUBURBAN_FAMILY", "RURAL_VALUE", "TEST_ALPHA", "TEST_BETA"]
        assert hierarchy_50.store_at(21).location_type == "rural"

    def test_store_ids_and_names(self, hierarchy_50):
        """Store ids are zero-padded and names carry the banner."""
        store = hierarchy_50.store_at(1)
        assert store.store_id == "STORE_001"
        assert store.store_name.startswith("FreshMart Downtown ")

    def test_deterministic(self, catalog):
        """Same inputs give the same tables."""
        a = HierarchyBuilder(catalog, seed=42).build(20, group_count=4)
        b = HierarchyBuilder(catalog, seed=42).build(20, group_count=4)
        assert a.stores == b.stores
        assert a.groups == b.groups

    def test_non_divisible_raises(self, catalog):
        """Uneven groups are a configuration error, not a remainder."""
        with pytest.raises(ConfigurationError, match="evenly"):
            HierarchyBuilder(catalog).build(50, group_count=3)

    def test_group_size_argument(self, catalog):
        """Grouping by size works like grouping by count."""
        hierarchy = HierarchyBuilder(catalog).build(50, group_size=25)
        assert hierarchy.group_count == 2
        assert hierarchy.group_size == 25

    def test_group_size_non_divisible(self, catalog):
        """A group size that does not divide the store count fails."""
        with pytest.raises(ConfigurationError):
            HierarchyBuilder(catalog).build(50, group_size=7)

    def test_requires_exactly_one_grouping(self, catalog):
        """Both or neither grouping arguments fail."""
        builder = HierarchyBuilder(catalog)
        with pytest.raises(ConfigurationError):
            builder.build(10)
        with pytest.raises(ConfigurationError):
            builder.build(10, group_count=2, group_size=5)

    def test_non_positive_counts(self, catalog):
        """Zero stores or zero groups fail."""
        builder = HierarchyBuilder(catalog)
        with pytest.raises(ConfigurationError):
            builder.build(0, group_count=1)
        with pytest.raises(ConfigurationError):
            builder.build(10, group_count=0)

    def test_more_groups_than_templates(self, catalog):
        """Templates cycle and group names stay distinct."""
        hierarchy = HierarchyBuilder(catalog).build(20, group_count=10)
        names = [g.group_name for g in hierarchy.groups]
        assert len(set(names)) == 10
        assert hierarchy.groups[5].template.key == "URBAN_PREMIUM"

    def test_wide_store_ids(self, tiny_catalog):
        """Store ids widen past 999 stores."""
        hierarchy = HierarchyBuilder(tiny_catalog).build(1000, group_count=2)
        assert hierarchy.store_at(1).store_id == "STORE_0001"
        assert hierarchy.store_at(1000).store_id == "STORE_1000"

    def test_store_at_out_of_range(self, hierarchy_50):
        """Indices outside 1..N fail."""
        with pytest.raises(ConfigurationError):
            hierarchy_50.store_at(0)
        with pytest.raises(ConfigurationError):
            hierarchy_50.store_at(51)

    def test_lookups(self, hierarchy_50):
        """Stores and groups resolve by id."""
        store = hierarchy_50.get_store("STORE_015")
        assert hierarchy_50.group_for(store).group_id == "GROUP_B"
        with pytest.raises(ConfigurationError):
            hierarchy_50.get_group("GROUP_Z")

    def test_to_dict(self, hierarchy_50):
        """Plain-data view exposes totals, groups and stores."""
        data = hierarchy_50.to_dict()
        assert data["banner"] == "FreshMart"
        assert data["all_stores"]["total_count"] == 50
        assert len(data["groups"]) == 5
        assert data["groups"][0]["stores"][0] == "STORE_001"


class TestHelpers:
    """Tests for id/label helpers."""

    def test_format_store_id(self):
        assert format_store_id(7) == "STORE_007"
        assert format_store_id(7, width=4) == "STORE_0007"

    @pytest.mark.parametrize(
        "position,label",
        [(0, "A"), (4, "E"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA")],
    )
    def test_group_label(self, position, label):
        assert group_label(position) == label

    def test_manual_hierarchy_indexes(self, catalog):
        """StoreHierarchy built by hand indexes its groups."""
        template = catalog.group_templates[0]
        hierarchy = StoreHierarchy(
            banner="X",
            stores=(),
            groups=(Group("GROUP_A", "A", (), template),),
        )
        assert hierarchy.get_group("GROUP_A").size == 0
