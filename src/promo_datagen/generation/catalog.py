"""
EntityCatalog - Static reference data consulted during generation.

The catalog is an explicit value passed into every generator, so several
runs with different catalogs can coexist in one process and tests can use a
minimal fixture catalog.

Usage:
    catalog = default_catalog()
    catalog.products           # 34 product templates
    catalog.get_card_size("2X1")

    # Smaller catalog for a 30-products-per-store run
    small = catalog.with_products(catalog.products[:30])
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from ..errors import ConfigurationError

# Engagement score bounds
SCORE_MIN = 0
SCORE_MAX = 100

POSITION_QUARTILES = ("Top", "Upper Mid", "Lower Mid", "Bottom")


@dataclass(frozen=True)
class CardSize:
    """Ad card footprint on the circular grid."""

    code: str  # e.g. "2X1"
    width: int
    height: int

    @property
    def footprint(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "width": self.width,
            "height": self.height,
            "footprint": self.footprint,
        }


@dataclass(frozen=True)
class ProductTemplate:
    """A product promoted in every store each week."""

    product_id: str
    name: str
    price: float
    category: str
    department: str
    unit: str = "Each"
    card_size: str | None = None  # None: drawn from the catalog per record


@dataclass(frozen=True)
class GroupTemplate:
    """Behavioral template shared by all stores in a group."""

    key: str  # e.g. "URBAN_PREMIUM"
    name: str
    location_type: str
    region: str
    tier: str
    pricing_multiplier: float = 1.0
    performance_multiplier: float = 1.0
    deal_preferences: tuple[str, ...] = ()  # empty: any catalog deal type
    description_suffix: str = ""
    store_name_templates: tuple[str, ...] = ()


@dataclass(frozen=True)
class FunnelRanges:
    """Bounds for impressions and each funnel stage conversion rate."""

    impressions: tuple[int, int] = (1_000, 50_000)
    view_rate: tuple[float, float] = (0.05, 0.25)
    click_rate: tuple[float, float] = (0.10, 0.35)
    atl_rate: tuple[float, float] = (0.15, 0.45)
    share_rate: tuple[float, float] = (0.02, 0.08)
    expanded_view_rate: tuple[float, float] = (0.20, 0.60)


@dataclass(frozen=True)
class EngagementWeights:
    """Weights of the engagement score blend. Must sum to 1."""

    view_rate: float = 0.3
    click_rate: float = 0.4
    atl_rate: float = 0.3

    @property
    def total(self) -> float:
        return self.view_rate + self.click_rate + self.atl_rate


@dataclass(frozen=True)
class EntityCatalog:
    """
    Reference data for one generation run.

    Validated on construction: any empty choice list or inconsistent entry
    raises ConfigurationError immediately rather than surfacing per record.

    Attributes:
        banner: Retail banner prefixed to store names
        products: Product templates generated for every store/week
        card_sizes: Card footprints available to the layout
        deal_types: Deal types available when a group has no preferences
        group_templates: Behavioral templates, assigned to groups in order
        funnel: Funnel stage ranges
        weights: Engagement score weights
        week_variance: Performance multiplier per week number (default 1.0)
        grid_columns: Positions per row on a circular page
        grid_rows: Rows per circular page
    """

    banner: str
    products: tuple[ProductTemplate, ...]
    card_sizes: tuple[CardSize, ...]
    deal_types: tuple[str, ...]
    group_templates: tuple[GroupTemplate, ...]
    funnel: FunnelRanges = field(default_factory=FunnelRanges)
    weights: EngagementWeights = field(default_factory=EngagementWeights)
    week_variance: dict[int, float] = field(default_factory=dict)
    grid_columns: int = 4
    grid_rows: int = 6
    products_per_page: int = 6

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check the catalog is usable for generation.

        Raises:
            ConfigurationError: On the first problem found
        """
        for name in ("products", "card_sizes", "deal_types", "group_templates"):
            if not getattr(self, name):
                raise ConfigurationError(f"Catalog has no {name}")

        product_ids = [p.product_id for p in self.products]
        if len(set(product_ids)) != len(product_ids):
            raise ConfigurationError("Catalog product ids must be unique")

        size_codes = {s.code for s in self.card_sizes}
        for product in self.products:
            if product.card_size is not None and product.card_size not in size_codes:
                raise ConfigurationError(
                    f"Product {product.product_id} uses unknown card size {product.card_size}"
                )

        keys = [t.key for t in self.group_templates]
        if len(set(keys)) != len(keys):
            raise ConfigurationError("Group template keys must be unique")
        for template in self.group_templates:
            unknown = set(template.deal_preferences) - set(self.deal_types)
            if unknown:
                raise ConfigurationError(
                    f"Group template {template.key} prefers unknown deal types: {sorted(unknown)}"
                )

        if abs(self.weights.total - 1.0) > 1e-9:
            raise ConfigurationError(
                f"Engagement weights must sum to 1, got {self.weights.total}"
            )

        low, high = self.funnel.impressions
        if low < 0 or high < low:
            raise ConfigurationError(f"Invalid impressions range {self.funnel.impressions}")
        for stage in ("view_rate", "click_rate", "atl_rate", "share_rate", "expanded_view_rate"):
            low, high = getattr(self.funnel, stage)
            if not 0.0 <= low <= high <= 1.0:
                raise ConfigurationError(f"Invalid {stage} range ({low}, {high})")

        if self.grid_columns < 1 or self.grid_rows < 1 or self.products_per_page < 1:
            raise ConfigurationError("Grid dimensions must be positive")

    @property
    def categories(self) -> list[str]:
        """Product categories in first-seen order."""
        return list(dict.fromkeys(p.category for p in self.products))

    @property
    def products_per_store(self) -> int:
        return len(self.products)

    def get_card_size(self, code: str) -> CardSize:
        for size in self.card_sizes:
            if size.code == code:
                return size
        raise ConfigurationError(f"Unknown card size: {code}")

    def get_group_template(self, key: str) -> GroupTemplate:
        for template in self.group_templates:
            if template.key == key:
                return template
        raise ConfigurationError(f"Unknown group template: {key}")

    def week_multiplier(self, week: int) -> float:
        return self.week_variance.get(week, 1.0)

    def with_products(self, products: Sequence[ProductTemplate]) -> EntityCatalog:
        """Return a copy of this catalog with a different product list."""
        return replace(self, products=tuple(products))


# =============================================================================
# Default catalog
# =============================================================================

DEFAULT_CARD_SIZES = (
    CardSize("1X1", 1, 1),
    CardSize("2X1", 2, 1),
    CardSize("1X2", 1, 2),
    CardSize("2X2", 2, 2),
    CardSize("3X1", 3, 1),
    CardSize("3X2", 3, 2),
    CardSize("3X3", 3, 3),
)

DEFAULT_DEAL_TYPES = (
    "BOGO",
    "$ Off",
    "% Off",
    "Buy 2 Get 1",
    "Multi-Buy",
    "Price Drop",
    "Manager Special",
    "Digital Coupon",
)

# (product_id, name, price, category, department, card_size)
_PRODUCT_ROWS = [
    ("FEAT_001", "Premium Ribeye Steak", 15.99, "featured_deals", "meat", "3X2"),
    ("FEAT_002", "Organic Strawberries", 4.99, "featured_deals", "produce", "2X2"),
    ("FEAT_003", "Artisan Sourdough Bread", 3.99, "featured_deals", "bakery", "2X2"),
    ("FEAT_004", "Premium Ice Cream", 6.99, "featured_deals", "dairy", "2X1"),
    ("FEAT_005", "Craft Beer Selection", 12.99, "featured_deals", "beverages", "2X1"),
    ("FRESH_001", "Fresh Avocados", 1.99, "fresh_market", "produce", "2X1"),
    ("FRESH_002", "Baby Spinach", 2.49, "fresh_market", "produce", "1X1"),
    ("FRESH_003", "Chocolate Croissants", 5.99, "fresh_market", "bakery", "2X1"),
    ("FRESH_004", "Boar's Head Turkey", 9.99, "fresh_market", "deli", "2X2"),
    ("FRESH_005", "Roma Tomatoes", 1.49, "fresh_market", "produce", "1X1"),
    ("MEAT_001", "Ground Beef 80/20", 4.99, "meat_seafood", "meat", "2X1"),
    ("MEAT_002", "Chicken Breast", 3.99, "meat_seafood", "meat", "1X1"),
    ("MEAT_003", "Atlantic Salmon", 12.99, "meat_seafood", "seafood", "2X2"),
    ("MEAT_004", "Pork Chops", 5.99, "meat_seafood", "meat", "2X1"),
    ("DAIRY_001", "Whole Milk Gallon", 3.49, "dairy_frozen", "dairy", "2X1"),
    ("DAIRY_002", "Greek Yogurt", 4.99, "dairy_frozen", "dairy", "2X1"),
    ("DAIRY_003", "Frozen Pizza", 5.99, "dairy_frozen", "frozen", "1X1"),
    ("DAIRY_004", "Sharp Cheddar Cheese", 4.49, "dairy_frozen", "dairy", "1X1"),
    ("GROC_001", "Pasta Penne", 1.99, "grocery_essentials", "grocery", "1X1"),
    ("GROC_002", "Olive Oil Extra Virgin", 7.99, "grocery_essentials", "grocery", "2X1"),
    ("GROC_003", "Quinoa Organic", 5.99, "grocery_essentials", "grocery", "1X1"),
    ("GROC_004", "Sea Salt", 2.49, "grocery_essentials", "grocery", "1X1"),
    ("BEV_001", "Sparkling Water 12-pack", 4.99, "beverages_snacks", "beverages", "2X1"),
    ("BEV_002", "Artisan Coffee Beans", 12.99, "beverages_snacks", "beverages", "2X1"),
    ("BEV_003", "Kettle Chips", 3.99, "beverages_snacks", "snacks", "1X1"),
    ("BEV_004", "Energy Drinks 4-pack", 7.99, "beverages_snacks", "beverages", "1X1"),
    ("HB_001", "Vitamin D3 Supplements", 14.99, "health_beauty", "health", "2X1"),
    ("HB_002", "Organic Shampoo", 8.99, "health_beauty", "beauty", "1X1"),
    ("HB_003", "Moisturizing Lotion", 6.99, "health_beauty", "beauty", "1X1"),
    ("HB_004", "Toothpaste Natural", 4.99, "health_beauty", "health", "1X1"),
    ("HOME_001", "Laundry Detergent", 11.99, "home_seasonal", "household", "2X1"),
    ("HOME_002", "Paper Towels 6-pack", 9.99, "home_seasonal", "household", "2X1"),
    ("HOME_003", "Candles Seasonal", 12.99, "home_seasonal", "seasonal", "1X1"),
    ("HOME_004", "Dish Soap", 3.99, "home_seasonal", "household", "1X1"),
]

# Sold by weight
_WEIGHED_DEPARTMENTS = {"meat", "seafood", "deli"}

DEFAULT_PRODUCTS = tuple(
    ProductTemplate(
        product_id=pid,
        name=name,
        price=price,
        category=category,
        department=department,
        unit="Lb." if department in _WEIGHED_DEPARTMENTS else "Each",
        card_size=size,
    )
    for pid, name, price, category, department, size in _PRODUCT_ROWS
)

DEFAULT_GROUP_TEMPLATES = (
    GroupTemplate(
        key="URBAN_PREMIUM",
        name="Urban Premium",
        location_type="urban",
        region="Northeast",
        tier="premium",
        pricing_multiplier=1.15,
        performance_multiplier=1.15,
        deal_preferences=("$ Off", "% Off"),
        description_suffix="Premium Pricing",
        store_name_templates=(
            "Downtown", "Midtown", "Financial District", "Arts Quarter", "Harbor Front",
            "City Center", "Metro Plaza", "Union Square", "Waterfront", "Capitol Hill",
        ),
    ),
    GroupTemplate(
        key="SUBURBAN_FAMILY",
        name="Suburban Family",
        location_type="suburban",
        region="Midwest",
        tier="standard",
        pricing_multiplier=1.05,
        performance_multiplier=1.05,
        deal_preferences=("BOGO", "Multi-Buy"),
        description_suffix="Family Pricing",
        store_name_templates=(
            "Commons", "Valley", "Springs", "Meadows", "Gardens",
            "Crossing", "Plaza", "Junction", "Village", "Parkway",
        ),
    ),
    GroupTemplate(
        key="RURAL_VALUE",
        name="Rural Value",
        location_type="rural",
        region="South",
        tier="value",
        pricing_multiplier=0.85,
        performance_multiplier=0.85,
        deal_preferences=("Price Drop", "$ Off"),
        description_suffix="Value Pricing",
        store_name_templates=(
            "Country Plaza", "Valley Market", "Farmland Center", "Prairie Point", "Countryside",
            "Harvest Square", "Rustic Ridge", "Green Acres", "Open Range", "Homestead",
        ),
    ),
    GroupTemplate(
        key="TEST_ALPHA",
        name="Test Alpha",
        location_type="test",
        region="West",
        tier="experimental",
        pricing_multiplier=1.20,
        performance_multiplier=1.20,
        deal_preferences=("Multi-Buy", "BOGO"),
        description_suffix="Alpha Test Pricing",
        store_name_templates=(
            "Innovation Hub", "Tech Center", "Digital Plaza", "Smart Store", "Future Market",
            "Alpha Lab", "Beta Test", "Pilot Store", "Experimental", "NextGen",
        ),
    ),
    GroupTemplate(
        key="TEST_BETA",
        name="Test Beta",
        location_type="test",
        region="West",
        tier="experimental",
        pricing_multiplier=0.95,
        performance_multiplier=0.95,
        deal_preferences=("Digital Coupon", "% Off"),
        description_suffix="Beta Digital Pricing",
        store_name_templates=(
            "Beta Center", "Test Market", "Trial Store", "Demo Hub", "Preview Plaza",
            "Concept Store", "Prototype", "Development Center", "Launch Pad", "Incubator",
        ),
    ),
)

# Week 40 is the baseline; older weeks trail off with a rebound in week 37
DEFAULT_WEEK_VARIANCE = {40: 1.00, 39: 0.95, 38: 0.92, 37: 0.97, 36: 0.90}


def default_catalog(banner: str = "FreshMart") -> EntityCatalog:
    """Build the standard 34-product, 5-template catalog."""
    return EntityCatalog(
        banner=banner,
        products=DEFAULT_PRODUCTS,
        card_sizes=DEFAULT_CARD_SIZES,
        deal_types=DEFAULT_DEAL_TYPES,
        group_templates=DEFAULT_GROUP_TEMPLATES,
        week_variance=dict(DEFAULT_WEEK_VARIANCE),
    )
