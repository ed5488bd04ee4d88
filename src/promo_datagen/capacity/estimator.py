"""
CapacityEstimator - Projection, strategy selection and benchmarking.

Usage:
    estimator = CapacityEstimator()
    estimator.estimate(50).strategy                      # STREAMING_ITERATOR
    estimator.get_scaling_strategy(120).recommendations
    estimator.benchmark(10, iterations=3).projections_ms[500]

    # Tuned cut points
    estimator = CapacityEstimator(thresholds=ScalingThresholds(streaming_max=100))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from ..generation import (
    BatchOptions,
    BatchProcessor,
    HierarchyBuilder,
    RecordGenerator,
    default_catalog,
)
from .benchmark import (
    REFERENCE_SCALES,
    BenchmarkResult,
    ExtrapolationStrategy,
    LinearExtrapolation,
    run_benchmark,
)
from .models import CapacityConfig, CapacityProjection, estimate
from .strategy import ScalingStrategy, ScalingThresholds, select_strategy

REPORT_SCENARIOS = (5, 10, 25, 50, 100, 250, 500)

# Template used for benchmark passes
BENCHMARK_TEMPLATE = "SUBURBAN_FAMILY"


@dataclass(frozen=True)
class CapacityReportRow:
    """One line of the capacity report table."""

    store_count: int
    promotions: int
    size_mb: float
    memory_mb: float
    load_time_ms: float
    risk: str
    strategy: str

    def to_dict(self) -> dict:
        return {
            "store_count": self.store_count,
            "promotions": self.promotions,
            "size_mb": round(self.size_mb, 2),
            "memory_mb": round(self.memory_mb),
            "load_time_ms": round(self.load_time_ms),
            "risk": self.risk,
            "strategy": self.strategy,
        }


def default_processor_factory(
    config: CapacityConfig,
    seed: int = 42,
    current_week: int = 40,
) -> Callable[[int], BatchProcessor]:
    """
    Factory building a single-group processor for n stores.

    The default catalog is trimmed to config.products_per_store when it
    has more products than that. The config.weeks weeks end at current_week,
    or at week config.weeks if that is later, so week numbers start at 1 or above.
    """
    catalog = default_catalog()
    if config.products_per_store < catalog.products_per_store:
        catalog = catalog.with_products(catalog.products[: config.products_per_store])
    last_week = max(current_week, config.weeks)
    weeks = list(range(last_week - config.weeks + 1, last_week + 1))

    def factory(store_count: int) -> BatchProcessor:
        hierarchy = HierarchyBuilder(catalog, seed=seed).build(store_count, group_count=1)
        generator = RecordGenerator(catalog, seed=seed, current_week=weeks[-1])
        return BatchProcessor(generator, hierarchy, weeks=weeks)

    return factory


class CapacityEstimator:
    """
    Capacity planning for a target store count.

    Attributes:
        config: Size and throughput model
        thresholds: Strategy cut points
        extrapolation: Projection strategy used by benchmark()
    """

    def __init__(
        self,
        config: CapacityConfig | None = None,
        thresholds: ScalingThresholds | None = None,
        extrapolation: ExtrapolationStrategy | None = None,
        processor_factory: Callable[[int], BatchProcessor] | None = None,
    ) -> None:
        self.config = config or CapacityConfig()
        self.thresholds = thresholds or ScalingThresholds()
        self.extrapolation = extrapolation or LinearExtrapolation()
        self._processor_factory = processor_factory

    def estimate(self, store_count: int) -> CapacityProjection:
        """Pure projection for a store count (see models.estimate)."""
        return estimate(store_count, self.config, self.thresholds)

    def get_scaling_strategy(self, store_count: int) -> ScalingStrategy:
        """
        Recommended approach, chunk size and mitigations for a store count.

        Advisories from the projection are carried on the strategy.
        """
        strategy = select_strategy(store_count, self.thresholds)
        strategy.advisories = list(self.estimate(store_count).advisories)
        return strategy

    def capacity_report(self, store_counts: Sequence[int] = REPORT_SCENARIOS) -> list[CapacityReportRow]:
        """Projection summary rows for a list of store counts."""
        rows = []
        for count in store_counts:
            projection = self.estimate(count)
            rows.append(
                CapacityReportRow(
                    store_count=count,
                    promotions=projection.record_count,
                    size_mb=projection.serialized_size_mb,
                    memory_mb=projection.memory_mb,
                    load_time_ms=projection.total_load_ms,
                    risk=projection.risk_tier,
                    strategy=projection.strategy.value,
                )
            )
        return rows

    def benchmark(
        self,
        store_count: int = 10,
        iterations: int = 3,
        reference_scales: Sequence[int] = REFERENCE_SCALES,
    ) -> BenchmarkResult:
        """
        Time real generation and extrapolate to reference scales.

        Args:
            store_count: Stores generated per pass
            iterations: Number of timed passes
            reference_scales: Store counts to project to

        Returns:
            BenchmarkResult with average time, records/second and projections
        """
        factory = self._processor_factory or default_processor_factory(self.config)
        processor = factory(store_count)
        template = BENCHMARK_TEMPLATE if self._processor_factory is None else None
        options = BatchOptions(include_metrics=False, include_validation=False)

        def run() -> int:
            result = processor.process_batch(1, store_count, template, options)
            return len(result.promotions)

        return run_benchmark(
            run,
            store_count=store_count,
            records_per_store=processor.records_per_store,
            iterations=iterations,
            extrapolation=self.extrapolation,
            reference_scales=reference_scales,
        )
