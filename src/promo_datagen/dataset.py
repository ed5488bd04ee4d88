"""
Dataset builder - Hierarchy, records and weekly metrics for one run.

The generation approach (single batch, chunked or streamed) comes from the
capacity estimator. Every approach yields the same records in the same
order, so the choice only affects peak memory and progress reporting.

Usage:
    dataset = build_dataset(GeneratorConfig(store_count=5, weeks=[40]))
    payload = dataset.to_dict()  # {"promotions", "storeHierarchy", "weeklyMetrics"}
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from .aggregation import AggregationEngine
from .capacity import CapacityEstimator, ScalingApproach, ScalingStrategy
from .config import GeneratorConfig
from .generation import (
    BatchOptions,
    BatchProcessor,
    EntityCatalog,
    HierarchyBuilder,
    PromotionRecord,
    RecordGenerator,
    StoreHierarchy,
    StreamingIterator,
)
from .validation import DatasetValidator, ValidationReport


@dataclass
class Dataset:
    """Generated records with the hierarchy and metrics built from them."""

    promotions: list[PromotionRecord]
    hierarchy: StoreHierarchy
    weekly_metrics: dict[str, Any]
    strategy: ScalingStrategy
    processing_time_ms: float = 0.0  # Run timing; kept out of to_dict()
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "promotions": [p.to_dict() for p in self.promotions],
            "storeHierarchy": self.hierarchy.to_dict(),
            "weeklyMetrics": self.weekly_metrics,
            "metadata": {
                **self.metadata,
                "strategy": self.strategy.approach.value,
                "chunk_size": self.strategy.chunk_size,
            },
        }


def build_processor(config: GeneratorConfig, catalog: EntityCatalog | None = None) -> BatchProcessor:
    """Hierarchy, generator and processor for a config."""
    catalog = catalog or config.build_catalog()
    hierarchy = HierarchyBuilder(catalog, seed=config.seed).build(
        config.store_count, group_count=config.group_count
    )
    generator = RecordGenerator(catalog, seed=config.seed, current_week=config.current_week)
    return BatchProcessor(generator, hierarchy, weeks=config.weeks)


def build_dataset(
    config: GeneratorConfig,
    catalog: EntityCatalog | None = None,
    progress: bool = False,
) -> Dataset:
    """
    Generate a complete dataset.

    Args:
        config: Run settings
        catalog: Catalog override (default: config.build_catalog())
        progress: Print a line per chunk

    Returns:
        Dataset

    Raises:
        ConfigurationError: On invalid config or catalog
    """
    processor = build_processor(config, catalog)
    capacity = replace(
        config.capacity,
        products_per_store=processor.products_per_store,
        weeks=len(processor.weeks),
    )
    estimator = CapacityEstimator(config=capacity, thresholds=config.thresholds)
    strategy = estimator.get_scaling_strategy(config.store_count)
    chunk_size = config.chunk_size or strategy.chunk_size

    if strategy.approach in (ScalingApproach.SINGLE_BATCH, ScalingApproach.CHUNKED_PROCESSING):
        result = processor.process_batch(
            1,
            config.store_count,
            options=BatchOptions(
                chunk_size=chunk_size,
                include_metrics=False,
                include_validation=False,
                workers=config.workers,
                progress=progress,
            ),
        )
        promotions = result.promotions
        elapsed_ms = result.metadata["processing_time_ms"]
    else:
        promotions = []
        elapsed_ms = 0.0
        with StreamingIterator(
            processor,
            total_stores=config.store_count,
            chunk_size=chunk_size,
            workers=config.workers,
        ) as stream:
            for chunk in stream:
                promotions.extend(chunk.promotions)
                elapsed_ms += chunk.processing_time_ms
                if progress:
                    print(
                        f"  Chunk {chunk.chunk_number}/{chunk.total_chunks}: "
                        f"{len(chunk.promotions):,} promotions ({chunk.processing_time_ms:.1f}ms)"
                    )

    engine = AggregationEngine(promotions)
    return Dataset(
        promotions=promotions,
        hierarchy=processor.hierarchy,
        weekly_metrics=engine.weekly_metrics(config.current_week),
        strategy=strategy,
        processing_time_ms=elapsed_ms,
        metadata={
            "seed": config.seed,
            "store_count": config.store_count,
            "group_count": config.group_count,
            "weeks": list(processor.weeks),
            "products_per_store": processor.products_per_store,
        },
    )


def validate_dataset(dataset: Dataset, config: GeneratorConfig) -> ValidationReport:
    """Validate a dataset against the shape its config asked for."""
    validator = DatasetValidator(
        store_count=config.store_count,
        weeks=config.weeks,
        products_per_store=dataset.metadata["products_per_store"],
        group_count=config.group_count,
    )
    return validator.validate(dataset.promotions, dataset.hierarchy)
