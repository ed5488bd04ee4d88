"""
Dataset generation: seeded streams, catalog, hierarchy, records, batches.

Components, leaves first:
- SeededSequence: deterministic float stream per run or per store/week
- EntityCatalog: products, card sizes, deal types, group templates
- HierarchyBuilder: stores partitioned into equal groups
- RecordGenerator: one PromotionRecord per (store, product, week)
- BatchProcessor: store ranges, optionally chunked or parallel
- StreamingIterator: lazy chunk stream over the whole hierarchy
"""

from .batch import BatchOptions, BatchProcessor, BatchResult, Chunk
from .catalog import (
    POSITION_QUARTILES,
    SCORE_MAX,
    SCORE_MIN,
    CardSize,
    EngagementWeights,
    EntityCatalog,
    FunnelRanges,
    GroupTemplate,
    ProductTemplate,
    default_catalog,
)
from .hierarchy import Group, HierarchyBuilder, Store, StoreHierarchy, format_store_id
from .name_pool import CityNamePool
from .records import PromotionRecord, RecordGenerator, safe_rate
from .sequence import SeededSequence, derive_seed, normalize_seed
from .streaming import StreamingIterator

__all__ = [
    # Sequence
    "SeededSequence",
    "derive_seed",
    "normalize_seed",
    # Catalog
    "EntityCatalog",
    "CardSize",
    "ProductTemplate",
    "GroupTemplate",
    "FunnelRanges",
    "EngagementWeights",
    "default_catalog",
    "POSITION_QUARTILES",
    "SCORE_MIN",
    "SCORE_MAX",
    # Hierarchy
    "HierarchyBuilder",
    "StoreHierarchy",
    "Store",
    "Group",
    "CityNamePool",
    "format_store_id",
    # Records
    "RecordGenerator",
    "PromotionRecord",
    "safe_rate",
    # Batches
    "BatchProcessor",
    "BatchOptions",
    "BatchResult",
    "Chunk",
    "StreamingIterator",
]
