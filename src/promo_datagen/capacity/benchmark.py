"""
Generation benchmark with pluggable extrapolation.

Runs real generation a few times, measures wall-clock time and projects the
cost of larger store counts. Projection is linear in store count by
default; that ignores memory-pressure effects at scale, which is why the
extrapolation is a separate strategy object that can be swapped out.

Benchmarks are blocking and must not run concurrently with each other.
"""

from __future__ import annotations

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from ..errors import ConfigurationError

REFERENCE_SCALES = (50, 100, 500)


class ExtrapolationStrategy(ABC):
    """Projects generation time for a store count from a measured rate."""

    name: str = "base"

    @abstractmethod
    def project_ms(self, records_per_second: float, records_per_store: int, store_count: int) -> float:
        """Projected generation time in milliseconds."""


class LinearExtrapolation(ExtrapolationStrategy):
    """Time grows linearly with record count at the measured rate."""

    name = "linear"

    def project_ms(self, records_per_second: float, records_per_store: int, store_count: int) -> float:
        if records_per_second <= 0:
            return float("inf")
        return store_count * records_per_store / records_per_second * 1000


@dataclass
class BenchmarkIteration:
    """Timing of one benchmark run."""

    iteration: int
    processing_time_ms: float
    records_generated: int

    @property
    def records_per_second(self) -> float:
        if self.processing_time_ms <= 0:
            return 0.0
        return self.records_generated / (self.processing_time_ms / 1000)


@dataclass
class BenchmarkResult:
    """Aggregated benchmark timings and projections."""

    store_count: int
    iterations: list[BenchmarkIteration]
    average_time_ms: float
    std_time_ms: float
    average_records_per_second: float
    projections_ms: dict[int, float] = field(default_factory=dict)
    extrapolation: str = "linear"

    def to_dict(self) -> dict:
        return {
            "stores_tested": self.store_count,
            "iterations": len(self.iterations),
            "average_time_ms": round(self.average_time_ms, 2),
            "std_time_ms": round(self.std_time_ms, 2),
            "average_promotions_per_second": round(self.average_records_per_second),
            "results": [
                {
                    "iteration": it.iteration,
                    "processing_time_ms": round(it.processing_time_ms, 2),
                    "promotions_generated": it.records_generated,
                    "promotions_per_second": round(it.records_per_second),
                }
                for it in self.iterations
            ],
            "extrapolation": self.extrapolation,
            "scaling_projection": {
                f"stores_{stores}": round(ms) if math.isfinite(ms) else None
                for stores, ms in self.projections_ms.items()
            },
        }


def run_benchmark(
    run: Callable[[], int],
    store_count: int,
    records_per_store: int,
    iterations: int = 3,
    extrapolation: ExtrapolationStrategy | None = None,
    reference_scales: Sequence[int] = REFERENCE_SCALES,
) -> BenchmarkResult:
    """
    Time `run` repeatedly and extrapolate to reference scales.

    Args:
        run: Performs one generation pass and returns the record count
        store_count: Stores generated per pass (for reporting)
        records_per_store: Records per store, used for projections
        iterations: Number of timed passes
        extrapolation: Projection strategy (default: LinearExtrapolation)
        reference_scales: Store counts to project to

    Returns:
        BenchmarkResult

    Raises:
        ConfigurationError: If iterations < 1
    """
    if iterations < 1:
        raise ConfigurationError(f"iterations must be positive, got {iterations}")
    extrapolation = extrapolation or LinearExtrapolation()

    runs: list[BenchmarkIteration] = []
    for i in range(iterations):
        start = time.perf_counter()
        generated = run()
        elapsed_ms = (time.perf_counter() - start) * 1000
        runs.append(BenchmarkIteration(i + 1, elapsed_ms, generated))

    times = np.array([r.processing_time_ms for r in runs])
    rates = np.array([r.records_per_second for r in runs])
    avg_rate = float(rates.mean())

    return BenchmarkResult(
        store_count=store_count,
        iterations=runs,
        average_time_ms=float(times.mean()),
        std_time_ms=float(times.std()),
        average_records_per_second=avg_rate,
        projections_ms={
            stores: extrapolation.project_ms(avg_rate, records_per_store, stores)
            for stores in reference_scales
        },
        extrapolation=extrapolation.name,
    )
