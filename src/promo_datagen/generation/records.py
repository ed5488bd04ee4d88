"""
RecordGenerator - One promotion-interaction record per (store, product, week).

Funnel counts are derived stage by stage from the previous stage, so
impressions >= views >= clicks >= add_to_list >= shares >= 0 holds by
construction. Rates and scores are read-only properties computed from the
counts; they are never stored.

Every (store, week) pair draws from its own SeededSequence seeded with
derive_seed(run_seed, store_index, week). A store/week slice is therefore
identical whether it is generated alone, inside a chunk, or on a worker.

Usage:
    generator = RecordGenerator(catalog, seed=42, current_week=40)
    records = generator.generate_store_week(store, week=40, template=group.template)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .catalog import (
    POSITION_QUARTILES,
    CardSize,
    EngagementWeights,
    EntityCatalog,
    GroupTemplate,
    ProductTemplate,
)
from .hierarchy import Store
from .sequence import SeededSequence, derive_seed


def safe_rate(numerator: int, denominator: int) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    return numerator / denominator if denominator else 0.0


def stage_for_week(week: int, current_week: int | None) -> str:
    """Lifecycle stage of a circular by its age relative to the current week."""
    if current_week is None:
        return "post_publish"
    age = current_week - week
    if age <= 0:
        return "post_publish"
    if age == 1:
        return "active"
    return "archived"


@dataclass(frozen=True)
class PromotionRecord:
    """
    A single promotion card shown in one store for one week.

    Attributes:
        card_id: Unique within a run (W{week}_{store_id}_{product_id})
        impressions, views, clicks, add_to_list, shares: Funnel counts
        expanded_views: Views that opened the card detail (<= views)
        grid_rows: Rows on the page; position_quartile is derived from it
        weights: Engagement score weights of the catalog used
    """

    card_id: str
    week_id: int
    store_id: str
    group_id: str
    product_id: str
    product_name: str
    category: str
    department: str
    price: float
    unit: str
    deal_type: str
    card_size: CardSize
    position_x: int
    position_y: int
    page: int
    stage: str
    description: str
    impressions: int
    views: int
    clicks: int
    add_to_list: int
    shares: int
    expanded_views: int
    grid_rows: int = 6
    weights: EngagementWeights = field(default_factory=EngagementWeights, repr=False)

    @property
    def view_rate(self) -> float:
        return safe_rate(self.views, self.impressions)

    @property
    def click_rate(self) -> float:
        return safe_rate(self.clicks, self.views)

    @property
    def atl_rate(self) -> float:
        return safe_rate(self.add_to_list, self.clicks)

    @property
    def share_rate(self) -> float:
        return safe_rate(self.shares, self.add_to_list)

    @property
    def engagement_score(self) -> int:
        """Weighted blend of view, click and add-to-list rates scaled to 0-100."""
        blended = (
            self.weights.view_rate * self.view_rate
            + self.weights.click_rate * self.click_rate
            + self.weights.atl_rate * self.atl_rate
        )
        # Halves round up
        return math.floor(100 * blended + 0.5)

    @property
    def composite_score(self) -> int:
        """Volume-weighted score used by the leaderboard views."""
        return self.views * 10 + self.clicks * 15 + self.add_to_list * 25

    @property
    def position_quartile(self) -> str:
        # Rows split into four bands, top to bottom
        band = (self.position_y - 1) * len(POSITION_QUARTILES) // self.grid_rows
        return POSITION_QUARTILES[min(band, len(POSITION_QUARTILES) - 1)]

    def to_dict(self) -> dict:
        """Flat dict including derived fields, as consumed by the dashboard."""
        return {
            "card_id": self.card_id,
            "week_id": self.week_id,
            "store_id": self.store_id,
            "group_id": self.group_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "category": self.category,
            "department": self.department,
            "price": self.price,
            "unit": self.unit,
            "deal_type": self.deal_type,
            "card_size": self.card_size.code,
            "width": self.card_size.width,
            "height": self.card_size.height,
            "footprint": self.card_size.footprint,
            "position_x": self.position_x,
            "position_y": self.position_y,
            "position_quartile": self.position_quartile,
            "page": self.page,
            "stage": self.stage,
            "description": self.description,
            "impressions": self.impressions,
            "views": self.views,
            "clicks": self.clicks,
            "add_to_list": self.add_to_list,
            "shares": self.shares,
            "expanded_views": self.expanded_views,
            "view_rate": self.view_rate,
            "click_rate": self.click_rate,
            "atl_rate": self.atl_rate,
            "share_rate": self.share_rate,
            "engagement_score": self.engagement_score,
            "composite_score": self.composite_score,
        }


class RecordGenerator:
    """
    Produces PromotionRecords from a catalog.

    Attributes:
        catalog: Reference data for the run
        seed: Run seed; store/week sub-seeds derive from it
        current_week: Week treated as "now" when assigning lifecycle stages
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        seed: int = 42,
        current_week: int | None = None,
    ) -> None:
        self.catalog = catalog
        self.seed = seed
        self.current_week = current_week

    def sequence_for(self, store: Store, week: int) -> SeededSequence:
        """Independent stream for one store/week slice."""
        return SeededSequence(derive_seed(self.seed, store.store_index, week))

    def template_for(self, store: Store) -> GroupTemplate:
        """Catalog template matching the store's location, region and tier, else the first."""
        for template in self.catalog.group_templates:
            if (template.location_type, template.region, template.tier) == (
                store.location_type,
                store.region,
                store.tier,
            ):
                return template
        return self.catalog.group_templates[0]

    def generate_store_week(
        self,
        store: Store,
        week: int,
        template: GroupTemplate | None = None,
    ) -> list[PromotionRecord]:
        """
        Generate one record per catalog product for a store and week.

        Args:
            store: Store the records belong to
            week: Week number
            template: Group template driving prices, volume and deal types
                (default: template_for(store))

        Returns:
            Records in catalog product order
        """
        if template is None:
            template = self.template_for(store)
        sequence = self.sequence_for(store, week)
        return [
            self.generate(store, product, week, sequence, template, product_index=i)
            for i, product in enumerate(self.catalog.products)
        ]

    def generate(
        self,
        store: Store,
        product: ProductTemplate,
        week: int,
        sequence: SeededSequence,
        template: GroupTemplate,
        product_index: int = 0,
    ) -> PromotionRecord:
        """
        Generate a single record, consuming draws from `sequence`.

        The draw order is fixed; changing it changes every dataset.

        Raises:
            ConfigurationError: If a choice list in the catalog is empty
        """
        catalog = self.catalog
        funnel = catalog.funnel

        # Funnel, each stage derived from the previous one
        base_impressions = sequence.next_int(*funnel.impressions)
        volume = template.performance_multiplier * catalog.week_multiplier(week)
        impressions = max(0, math.floor(base_impressions * volume))
        views = math.floor(impressions * sequence.next_float(*funnel.view_rate))
        clicks = math.floor(views * sequence.next_float(*funnel.click_rate))
        add_to_list = math.floor(clicks * sequence.next_float(*funnel.atl_rate))
        shares = math.floor(add_to_list * sequence.next_float(*funnel.share_rate))
        expanded_views = math.floor(views * sequence.next_float(*funnel.expanded_view_rate))

        # Categorical attributes
        deal_type = sequence.choice(template.deal_preferences or catalog.deal_types)
        if product.card_size is not None:
            card_size = catalog.get_card_size(product.card_size)
        else:
            card_size = sequence.choice(catalog.card_sizes)
        position_x = sequence.next_int(1, catalog.grid_columns)
        position_y = sequence.next_int(1, catalog.grid_rows)

        price = round(
            product.price * template.pricing_multiplier * sequence.next_float(0.95, 1.05), 2
        )
        description = product.name
        if template.description_suffix:
            description = f"{product.name} | {template.description_suffix} | CLUB CARD PRICE"

        return PromotionRecord(
            card_id=f"W{week}_{store.store_id}_{product.product_id}",
            week_id=week,
            store_id=store.store_id,
            group_id=store.group_id,
            product_id=product.product_id,
            product_name=product.name,
            category=product.category,
            department=product.department,
            price=price,
            unit=product.unit,
            deal_type=deal_type,
            card_size=card_size,
            position_x=position_x,
            position_y=position_y,
            page=product_index // catalog.products_per_page + 1,
            stage=stage_for_week(week, self.current_week),
            description=description,
            impressions=impressions,
            views=views,
            clicks=clicks,
            add_to_list=add_to_list,
            shares=shares,
            expanded_views=expanded_views,
            grid_rows=catalog.grid_rows,
            weights=catalog.weights,
        )
