"""
Capacity planning for promotion datasets.

Projects size, memory and latency for a target store count, picks a
generation approach (single batch, chunked, streaming, external storage)
and benchmarks real generation with pluggable extrapolation.

Usage:
    from promo_datagen.capacity import CapacityEstimator

    estimator = CapacityEstimator()
    projection = estimator.estimate(50)
    if projection.advisories:
        for advisory in projection.advisories:
            print(advisory)
"""

from .benchmark import (
    REFERENCE_SCALES,
    BenchmarkIteration,
    BenchmarkResult,
    ExtrapolationStrategy,
    LinearExtrapolation,
    run_benchmark,
)
from .estimator import REPORT_SCENARIOS, CapacityEstimator, CapacityReportRow
from .models import CapacityConfig, CapacityProjection, estimate, recommended_chunk_size
from .strategy import (
    MITIGATIONS,
    EstimationAdvisory,
    ScalingApproach,
    ScalingStrategy,
    ScalingThresholds,
    select_strategy,
)

__all__ = [
    # Estimator
    "CapacityEstimator",
    "CapacityReportRow",
    "REPORT_SCENARIOS",
    # Projection
    "CapacityConfig",
    "CapacityProjection",
    "estimate",
    "recommended_chunk_size",
    # Strategy
    "ScalingApproach",
    "ScalingThresholds",
    "ScalingStrategy",
    "EstimationAdvisory",
    "MITIGATIONS",
    "select_strategy",
    # Benchmark
    "ExtrapolationStrategy",
    "LinearExtrapolation",
    "BenchmarkIteration",
    "BenchmarkResult",
    "REFERENCE_SCALES",
    "run_benchmark",
]
