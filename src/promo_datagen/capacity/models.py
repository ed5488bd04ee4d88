"""
Capacity projection model.

Projects record count, serialized size, memory and load latency for a
target store count from fixed per-record constants. The model is a pure
function of (store count, config, thresholds); recomputing it is idempotent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from ..errors import ConfigurationError
from .strategy import EstimationAdvisory, ScalingApproach, ScalingThresholds

BYTES_PER_MB = 1024 * 1024


@dataclass
class CapacityConfig:
    """Configuration for capacity projection."""

    # Dataset shape
    products_per_store: int = 30  # Records per store per week
    weeks: int = 1

    # Size model
    bytes_per_record: int = 1_200  # Average in-memory record size
    metadata_overhead: float = 0.10  # Hierarchy, metrics, indexes
    serialization_multiplier: float = 1.4  # JSON text vs raw size
    memory_multiplier: float = 2.0  # Object overhead vs raw size
    peak_multiplier: float = 1.5  # Transient copies during processing

    # Throughput model
    records_per_ms: float = 500.0  # Generation
    transfer_kb_per_ms: float = 50.0  # Network
    render_records_per_ms: float = 100.0  # UI rendering

    # Risk tiers by store count (strictly greater than)
    medium_risk_stores: int = 50
    high_risk_stores: int = 100
    degraded_ui_stores: int = 50
    poor_ui_stores: int = 200

    # Peak memory above which an advisory is attached
    memory_budget_mb: float = 512.0

    def __post_init__(self) -> None:
        if self.products_per_store < 1 or self.weeks < 1:
            raise ConfigurationError("products_per_store and weeks must be positive")
        if self.records_per_ms <= 0 or self.transfer_kb_per_ms <= 0 or self.render_records_per_ms <= 0:
            raise ConfigurationError("Throughput rates must be positive")


@dataclass(frozen=True)
class CapacityProjection:
    """Size, memory and latency projection for one store count."""

    store_count: int
    record_count: int
    raw_size_mb: float
    with_metadata_mb: float
    serialized_size_mb: float
    memory_mb: float
    peak_memory_mb: float
    generation_ms: float
    transfer_ms: float
    render_ms: float
    total_load_ms: float
    risk_tier: str  # LOW / MEDIUM / HIGH
    ui_responsiveness: str  # GOOD / DEGRADED / POOR
    recommended_chunk_size: int
    strategy: ScalingApproach
    advisories: tuple[EstimationAdvisory, ...] = field(default=())

    def to_dict(self) -> dict:
        return {
            "stores": self.store_count,
            "promotions": self.record_count,
            "base_size_mb": round(self.raw_size_mb, 2),
            "with_metadata_mb": round(self.with_metadata_mb, 2),
            "json_size_mb": round(self.serialized_size_mb, 2),
            "memory_requirement_mb": round(self.memory_mb),
            "memory_peak_mb": round(self.peak_memory_mb),
            "generation_time_ms": round(self.generation_ms),
            "network_transfer_ms": round(self.transfer_ms),
            "rendering_time_ms": round(self.render_ms),
            "total_load_time_ms": round(self.total_load_ms),
            "recommended_chunk_size": self.recommended_chunk_size,
            "browser_limit_risk": self.risk_tier,
            "ui_responsiveness": self.ui_responsiveness,
            "strategy": self.strategy.value,
            "advisories": [str(a) for a in self.advisories],
        }


def recommended_chunk_size(store_count: int) -> int:
    """Whole set up to 10 stores, then shrinking with sqrt(n) within 5..25."""
    if store_count <= 10:
        return store_count
    return min(25, max(5, math.floor(50 / math.sqrt(store_count))))


def estimate(
    store_count: int,
    config: CapacityConfig | None = None,
    thresholds: ScalingThresholds | None = None,
) -> CapacityProjection:
    """
    Project dataset size and load cost for a store count.

    Args:
        store_count: Target number of stores
        config: Size/throughput model
        thresholds: Strategy cut points

    Returns:
        CapacityProjection including recommended strategy and advisories

    Raises:
        ConfigurationError: If store_count is not positive
    """
    if store_count < 1:
        raise ConfigurationError(f"store_count must be positive, got {store_count}")
    config = config or CapacityConfig()
    thresholds = thresholds or ScalingThresholds()

    records = store_count * config.products_per_store * config.weeks
    raw_bytes = records * config.bytes_per_record
    with_metadata = raw_bytes * (1 + config.metadata_overhead)
    serialized = with_metadata * config.serialization_multiplier
    memory = with_metadata * config.memory_multiplier
    peak = memory * config.peak_multiplier

    generation_ms = max(1.0, records / config.records_per_ms)
    transfer_ms = serialized / (1024 * config.transfer_kb_per_ms)
    render_ms = records / config.render_records_per_ms

    if store_count > config.high_risk_stores:
        risk = "HIGH"
    elif store_count > config.medium_risk_stores:
        risk = "MEDIUM"
    else:
        risk = "LOW"

    if store_count > config.poor_ui_stores:
        ui = "POOR"
    elif store_count > config.degraded_ui_stores:
        ui = "DEGRADED"
    else:
        ui = "GOOD"

    approach = thresholds.approach_for(store_count)
    peak_mb = peak / BYTES_PER_MB

    advisories: list[EstimationAdvisory] = []
    if risk != "LOW":
        advisories.append(
            EstimationAdvisory(
                "browser_limit_risk",
                f"{store_count} stores is {risk} risk for a single browser tab",
                "warning" if risk == "HIGH" else "info",
            )
        )
    if ui != "GOOD":
        advisories.append(
            EstimationAdvisory(
                "ui_responsiveness",
                f"UI responsiveness expected {ui} with {records:,} records",
                "warning" if ui == "POOR" else "info",
            )
        )
    if peak_mb > config.memory_budget_mb:
        advisories.append(
            EstimationAdvisory(
                "memory_budget",
                f"Peak memory {peak_mb:.0f}MB exceeds budget {config.memory_budget_mb:.0f}MB",
                "warning",
            )
        )
    if approach is ScalingApproach.DATABASE_BACKEND:
        advisories.append(
            EstimationAdvisory(
                "external_storage",
                f"{store_count} stores exceeds in-process limit of {thresholds.streaming_max}",
                "warning",
            )
        )

    return CapacityProjection(
        store_count=store_count,
        record_count=records,
        raw_size_mb=raw_bytes / BYTES_PER_MB,
        with_metadata_mb=with_metadata / BYTES_PER_MB,
        serialized_size_mb=serialized / BYTES_PER_MB,
        memory_mb=memory / BYTES_PER_MB,
        peak_memory_mb=peak_mb,
        generation_ms=generation_ms,
        transfer_ms=transfer_ms,
        render_ms=render_ms,
        total_load_ms=generation_ms + transfer_ms + render_ms,
        risk_tier=risk,
        ui_responsiveness=ui,
        recommended_chunk_size=recommended_chunk_size(store_count),
        strategy=approach,
        advisories=tuple(advisories),
    )
