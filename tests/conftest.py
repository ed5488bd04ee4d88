"""
Pytest fixtures for promo_datagen tests.

Provides:
- Default and trimmed catalogs
- A minimal fixture catalog (no fixed card sizes, no deal preferences)
- Hierarchies and processors at the standard 50-store scale
"""

import pytest

from promo_datagen.generation import (
    BatchProcessor,
    EntityCatalog,
    GroupTemplate,
    HierarchyBuilder,
    ProductTemplate,
    RecordGenerator,
    default_catalog,
)
from promo_datagen.generation.catalog import DEFAULT_CARD_SIZES

SEED = 42


# =============================================================================
# Catalogs
# =============================================================================

@pytest.fixture
def catalog() -> EntityCatalog:
    """Standard 34-product catalog."""
    return default_catalog()


@pytest.fixture
def catalog_30(catalog) -> EntityCatalog:
    """Catalog trimmed to 30 products per store."""
    return catalog.with_products(catalog.products[:30])


@pytest.fixture
def tiny_catalog() -> EntityCatalog:
    """Three products, two templates, card sizes drawn per record."""
    return EntityCatalog(
        banner="TestMart",
        products=(
            ProductTemplate("P1", "Apples", 1.99, "produce", "produce"),
            ProductTemplate("P2", "Bread", 2.49, "bakery", "bakery"),
            ProductTemplate("P3", "Steak", 9.99, "meat", "meat", unit="Lb."),
        ),
        card_sizes=DEFAULT_CARD_SIZES[:3],
        deal_types=("BOGO", "$ Off"),
        group_templates=(
            GroupTemplate("NORTH", "North", "urban", "North", "standard"),
            GroupTemplate("SOUTH", "South", "rural", "South", "value", pricing_multiplier=0.9),
        ),
    )


# =============================================================================
# Hierarchies and processors
# =============================================================================

@pytest.fixture
def hierarchy_50(catalog_30):
    """50 stores in 5 groups of 10."""
    return HierarchyBuilder(catalog_30, seed=SEED).build(50, group_count=5)


@pytest.fixture
def processor_50(catalog_30, hierarchy_50) -> BatchProcessor:
    """50 stores x 30 products x 1 week."""
    generator = RecordGenerator(catalog_30, seed=SEED, current_week=40)
    return BatchProcessor(generator, hierarchy_50, weeks=[40])


@pytest.fixture
def make_processor(catalog):
    """Factory for processors with custom store count, groups and weeks."""

    def _make(store_count=5, group_count=1, weeks=(40,), seed=SEED, cat=None):
        cat = cat or catalog
        hierarchy = HierarchyBuilder(cat, seed=seed).build(store_count, group_count=group_count)
        generator = RecordGenerator(cat, seed=seed, current_week=max(weeks))
        return BatchProcessor(generator, hierarchy, weeks=list(weeks))

    return _make
