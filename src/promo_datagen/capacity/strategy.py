"""
Scaling strategy selection.

Maps a store count onto one of four generation approaches using
configurable cut points. Thresholds are deployment parameters, not derived
constants: override them with ScalingThresholds (or the `thresholds:`
section of a config file).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from ..errors import ConfigurationError


class ScalingApproach(Enum):
    """Generation approach, from in-memory to external storage."""

    SINGLE_BATCH = "SINGLE_BATCH"
    CHUNKED_PROCESSING = "CHUNKED_PROCESSING"
    STREAMING_ITERATOR = "STREAMING_ITERATOR"
    DATABASE_BACKEND = "DATABASE_BACKEND"


@dataclass
class ScalingThresholds:
    """Cut points and chunk sizes for strategy selection."""

    # Upper store counts (inclusive) for each in-process approach
    single_batch_max: int = 10
    chunked_max: int = 25
    streaming_max: int = 50

    # Stores per chunk for each approach (single batch uses the store count)
    chunked_chunk_size: int = 10
    streaming_chunk_size: int = 25
    database_page_size: int = 50

    def __post_init__(self) -> None:
        if not 0 < self.single_batch_max <= self.chunked_max <= self.streaming_max:
            raise ConfigurationError(
                "Thresholds must satisfy 0 < single_batch_max <= chunked_max <= streaming_max, "
                f"got {self.single_batch_max}/{self.chunked_max}/{self.streaming_max}"
            )
        for name in ("chunked_chunk_size", "streaming_chunk_size", "database_page_size"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be positive")

    def approach_for(self, store_count: int) -> ScalingApproach:
        if store_count <= self.single_batch_max:
            return ScalingApproach.SINGLE_BATCH
        if store_count <= self.chunked_max:
            return ScalingApproach.CHUNKED_PROCESSING
        if store_count <= self.streaming_max:
            return ScalingApproach.STREAMING_ITERATOR
        return ScalingApproach.DATABASE_BACKEND

    def chunk_size_for(self, approach: ScalingApproach, store_count: int) -> int:
        if approach is ScalingApproach.SINGLE_BATCH:
            return max(1, store_count)
        if approach is ScalingApproach.CHUNKED_PROCESSING:
            return self.chunked_chunk_size
        if approach is ScalingApproach.STREAMING_ITERATOR:
            return self.streaming_chunk_size
        return self.database_page_size


MITIGATIONS: dict[ScalingApproach, list[str]] = {
    ScalingApproach.SINGLE_BATCH: [
        "Generate all data in a single batch",
        "No special memory management needed",
    ],
    ScalingApproach.CHUNKED_PROCESSING: [
        "Use chunked processing with {chunk_size} stores per chunk",
        "Monitor memory usage between chunks",
        "Consider lazy loading for UI components",
    ],
    ScalingApproach.STREAMING_ITERATOR: [
        "Use streaming iterator pattern",
        "Process data in {chunk_size}-store chunks",
        "Implement data virtualization in UI",
        "Consider background processing",
    ],
    ScalingApproach.DATABASE_BACKEND: [
        "Move to database-backed solution",
        "Implement server-side pagination ({chunk_size} stores per page)",
        "Use client-side caching for visited pages",
        "Generate and load data incrementally by store range",
    ],
}


@dataclass(frozen=True)
class EstimationAdvisory:
    """
    Informational note attached to a projection that crosses a risk threshold.

    Advisories never block generation.
    """

    code: str  # e.g. "browser_limit_risk"
    message: str
    level: Literal["info", "warning"] = "info"

    def __str__(self) -> str:
        return f"[{self.level}] {self.code}: {self.message}"


@dataclass
class ScalingStrategy:
    """Recommended generation approach for a store count."""

    store_count: int
    approach: ScalingApproach
    chunk_size: int
    recommendations: list[str] = field(default_factory=list)
    advisories: list[EstimationAdvisory] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "target_stores": self.store_count,
            "approach": self.approach.value,
            "chunk_size": self.chunk_size,
            "recommendations": list(self.recommendations),
            "advisories": [str(a) for a in self.advisories],
        }


def select_strategy(
    store_count: int,
    thresholds: ScalingThresholds | None = None,
) -> ScalingStrategy:
    """
    Pick an approach, chunk size and mitigations for a store count.

    Args:
        store_count: Target number of stores
        thresholds: Cut points (defaults: 10 / 25 / 50)

    Returns:
        ScalingStrategy without advisories (see CapacityEstimator for those)
    """
    thresholds = thresholds or ScalingThresholds()
    approach = thresholds.approach_for(store_count)
    chunk_size = thresholds.chunk_size_for(approach, store_count)
    return ScalingStrategy(
        store_count=store_count,
        approach=approach,
        chunk_size=chunk_size,
        recommendations=[m.format(chunk_size=chunk_size) for m in MITIGATIONS[approach]],
    )
