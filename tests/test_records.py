"""
Tests for RecordGenerator and PromotionRecord.
"""

import math
from dataclasses import FrozenInstanceError, replace

import pytest

from promo_datagen.errors import ConfigurationError
from promo_datagen.generation import (
    EngagementWeights,
    HierarchyBuilder,
    PromotionRecord,
    RecordGenerator,
    SeededSequence,
)
from promo_datagen.generation.records import stage_for_week


@pytest.fixture
def store_week(catalog):
    """Records for one store/week of the default catalog."""
    hierarchy = HierarchyBuilder(catalog, seed=42).build(10, group_count=2)
    store = hierarchy.store_at(3)
    generator = RecordGenerator(catalog, seed=42, current_week=40)
    return generator.generate_store_week(store, 40, hierarchy.group_for(store).template)


@pytest.fixture
def sample_record(store_week) -> PromotionRecord:
    return store_week[0]


class TestRecordGenerator:
    """Tests for record generation."""

    def test_one_record_per_product(self, store_week, catalog):
        """A store/week slice has one record per catalog product."""
        assert len(store_week) == catalog.products_per_store
        assert [r.product_id for r in store_week] == [p.product_id for p in catalog.products]

    def test_funnel_monotonic(self, make_processor):
        """impressions >= views >= clicks >= add_to_list >= shares >= 0 everywhere."""
        result = make_processor(store_count=20, group_count=5, weeks=(36, 37, 38, 39, 40)).process_batch(1, 20)
        for r in result.promotions:
            assert r.impressions >= r.views >= r.clicks >= r.add_to_list >= r.shares >= 0
            assert r.expanded_views <= r.views

    def test_funnel_rates_within_ranges(self, store_week, catalog):
        """Stage rates stay inside the catalog ranges (floor can only lower them)."""
        funnel = catalog.funnel
        for r in store_week:
            assert r.view_rate <= funnel.view_rate[1]
            assert r.click_rate <= funnel.click_rate[1]
            assert r.atl_rate <= funnel.atl_rate[1]

    def test_engagement_score_range(self, make_processor):
        """Scores fall within 0-100."""
        result = make_processor(store_count=10, group_count=5).process_batch(1, 10)
        assert all(0 <= r.engagement_score <= 100 for r in result.promotions)

    def test_card_id_format(self, sample_record):
        """card_id combines week, store and product."""
        assert sample_record.card_id == "W40_STORE_003_FEAT_001"

    def test_category_from_product(self, store_week, catalog):
        """Each record keeps its product's category and department."""
        for record, product in zip(store_week, catalog.products):
            assert record.category == product.category
            assert record.department == product.department

    def test_deal_type_from_group_preferences(self, store_week, catalog):
        """Deal types come from the group template's preferences."""
        preferences = set(catalog.group_templates[0].deal_preferences)
        assert {r.deal_type for r in store_week} <= preferences

    def test_fixed_card_sizes(self, store_week, catalog):
        """Products with a fixed size keep it."""
        for record, product in zip(store_week, catalog.products):
            assert record.card_size.code == product.card_size

    def test_drawn_card_sizes(self, tiny_catalog):
        """Products without a size draw one from the catalog."""
        hierarchy = HierarchyBuilder(tiny_catalog, seed=1).build(4, group_count=2)
        generator = RecordGenerator(tiny_catalog, seed=1)
        codes = {s.code for s in tiny_catalog.card_sizes}
        for store in hierarchy.stores:
            for r in generator.generate_store_week(store, 40, hierarchy.group_for(store).template):
                assert r.card_size.code in codes
                assert r.deal_type in tiny_catalog.deal_types

    def test_positions_on_grid(self, store_week, catalog):
        """Positions fall on the catalog grid."""
        for r in store_week:
            assert 1 <= r.position_x <= catalog.grid_columns
            assert 1 <= r.position_y <= catalog.grid_rows

    def test_pages(self, store_week):
        """Six products per page."""
        assert store_week[0].page == 1
        assert store_week[6].page == 2

    def test_deterministic(self, catalog):
        """Same seed reproduces the slice; a different seed changes it."""
        hierarchy = HierarchyBuilder(catalog, seed=42).build(5, group_count=1)
        store = hierarchy.store_at(1)
        template = hierarchy.groups[0].template
        a = RecordGenerator(catalog, seed=42).generate_store_week(store, 40, template)
        b = RecordGenerator(catalog, seed=42).generate_store_week(store, 40, template)
        c = RecordGenerator(catalog, seed=43).generate_store_week(store, 40, template)
        assert a == b
        assert [r.impressions for r in a] != [r.impressions for r in c]

    def test_weeks_differ(self, catalog):
        """Different weeks of one store use different streams."""
        hierarchy = HierarchyBuilder(catalog, seed=42).build(5, group_count=1)
        store = hierarchy.store_at(1)
        template = hierarchy.groups[0].template
        generator = RecordGenerator(catalog, seed=42)
        w39 = generator.generate_store_week(store, 39, template)
        w40 = generator.generate_store_week(store, 40, template)
        assert [r.impressions for r in w39] != [r.impressions for r in w40]

    def test_default_template_from_store(self, catalog):
        """Without a template the store's own attributes pick one."""
        hierarchy = HierarchyBuilder(catalog, seed=42).build(10, group_count=5)
        store = hierarchy.store_at(5)
        generator = RecordGenerator(catalog, seed=42)
        template = hierarchy.group_for(store).template
        assert generator.template_for(store) == template
        assert generator.generate_store_week(store, 40) == generator.generate_store_week(store, 40, template)

    def test_generate_consumes_sequence(self, catalog):
        """generate() draws from the sequence it is given."""
        hierarchy = HierarchyBuilder(catalog, seed=42).build(5, group_count=1)
        store = hierarchy.store_at(1)
        template = hierarchy.groups[0].template
        generator = RecordGenerator(catalog, seed=42)
        seq = SeededSequence(99)
        generator.generate(store, catalog.products[0], 40, seq, template)
        assert seq.draws > 0

    def test_empty_choice_is_configuration_error(self):
        """An empty choice list surfaces as a configuration error."""
        with pytest.raises(ConfigurationError):
            SeededSequence(1).choice(())


class TestPromotionRecord:
    """Tests for derived fields on PromotionRecord."""

    def test_immutable(self, sample_record):
        """Records cannot be modified after creation."""
        with pytest.raises(FrozenInstanceError):
            sample_record.views = 0

    def test_rates_derived_from_counts(self, sample_record):
        """Rates are recomputed from the funnel counts."""
        r = replace(
            sample_record, impressions=1000, views=200, clicks=50, add_to_list=10, shares=1
        )
        assert r.view_rate == pytest.approx(0.2)
        assert r.click_rate == pytest.approx(0.25)
        assert r.atl_rate == pytest.approx(0.2)
        assert r.share_rate == pytest.approx(0.1)
        assert r.engagement_score == 22

    def test_score_matches_weights(self, store_week):
        """engagement_score is the 0.3/0.4/0.3 blend scaled to 0-100."""
        for r in store_week:
            expected = math.floor(100 * (0.3 * r.view_rate + 0.4 * r.click_rate + 0.3 * r.atl_rate) + 0.5)
            assert r.engagement_score == expected

    def test_zero_counts(self, sample_record):
        """Zero denominators give zero rates, not errors."""
        r = replace(sample_record, impressions=0, views=0, clicks=0, add_to_list=0, shares=0)
        assert r.view_rate == r.click_rate == r.atl_rate == r.share_rate == 0.0
        assert r.engagement_score == 0

    def test_score_half_rounds_up(self, sample_record):
        """An exact .5 blend rounds up, not to even."""
        r = replace(
            sample_record,
            impressions=100,
            views=50,
            clicks=0,
            add_to_list=0,
            shares=0,
            weights=EngagementWeights(0.25, 0.5, 0.25),
        )
        # 100 * 0.25 * 0.5 == 12.5 exactly
        assert r.engagement_score == 13

    def test_composite_score(self, sample_record):
        """composite = views*10 + clicks*15 + add_to_list*25."""
        r = replace(sample_record, views=100, clicks=20, add_to_list=4)
        assert r.composite_score == 1000 + 300 + 100

    @pytest.mark.parametrize(
        "row,quartile",
        [(1, "Top"), (2, "Top"), (3, "Upper Mid"), (4, "Lower Mid"), (5, "Lower Mid"), (6, "Bottom")],
    )
    def test_quartile_derived_from_row(self, sample_record, row, quartile):
        """position_quartile follows position_y."""
        assert replace(sample_record, position_y=row).position_quartile == quartile

    def test_to_dict_includes_derived(self, sample_record):
        """to_dict exposes counts and derived fields consistently."""
        data = sample_record.to_dict()
        assert data["engagement_score"] == sample_record.engagement_score
        assert data["card_size"] == sample_record.card_size.code
        assert data["footprint"] == sample_record.card_size.footprint
        assert data["position_quartile"] == sample_record.position_quartile


class TestStageForWeek:
    """Tests for lifecycle stages."""

    @pytest.mark.parametrize(
        "week,stage",
        [(40, "post_publish"), (39, "active"), (38, "archived"), (36, "archived")],
    )
    def test_stage(self, week, stage):
        assert stage_for_week(week, 40) == stage

    def test_no_current_week(self):
        assert stage_for_week(12, None) == "post_publish"
