"""
BatchProcessor - Drives RecordGenerator across a range of stores and weeks.

A batch covers an inclusive range of 1-based store indices. It is generated
as a sequence of chunks (contiguous store sub-ranges); with no chunk size
the whole range is a single chunk. Each store/week slice draws from its own
sub-seed, so chunks can be produced sequentially or on a worker pool and
still concatenate to the same record list.

Usage:
    processor = BatchProcessor(generator, hierarchy, weeks=[40])
    result = processor.process_batch(1, 50, options=BatchOptions(chunk_size=10))
    result.metadata["processing_time_ms"]

    # Lazy chunk source shared with StreamingIterator
    for chunk in processor.iter_chunks(1, 50, chunk_size=10):
        ...
"""

from __future__ import annotations

import math
import time
import tracemalloc
from collections import deque
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Sequence

from ..errors import ConfigurationError
from .catalog import GroupTemplate
from .hierarchy import StoreHierarchy
from .records import PromotionRecord, RecordGenerator

# In-flight chunks per worker in parallel mode
PARALLEL_WINDOW_PER_WORKER = 2


@dataclass
class BatchOptions:
    """Options for BatchProcessor.process_batch()."""

    chunk_size: int | None = None  # Stores per chunk; None = whole range
    include_metrics: bool = True  # Attach funnel totals and rates
    include_validation: bool = True  # Run the count/coverage self-check
    workers: int = 1  # >1 generates chunks on a pool
    use_processes: bool = False  # Process pool instead of thread pool
    progress: bool = False  # Print a line per chunk
    memory_monitoring: bool = False  # Track peak allocation with tracemalloc


@dataclass
class Chunk:
    """Records for a contiguous slice of stores."""

    chunk_number: int  # 1-based
    total_chunks: int
    store_ids: list[str]
    promotions: list[PromotionRecord]
    processing_time_ms: float = 0.0

    @property
    def stores_in_chunk(self) -> int:
        return len(self.store_ids)

    def to_dict(self) -> dict:
        return {
            "chunk_number": self.chunk_number,
            "total_chunks": self.total_chunks,
            "stores_in_chunk": self.stores_in_chunk,
            "store_ids": list(self.store_ids),
            "promotions": [p.to_dict() for p in self.promotions],
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass
class BatchResult:
    """Output of process_batch()."""

    store_ids: list[str]
    promotions: list[PromotionRecord]
    metadata: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] | None = None
    validation: dict[str, Any] | None = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "store_ids": list(self.store_ids),
            "promotions": [p.to_dict() for p in self.promotions],
            "metadata": dict(self.metadata),
        }
        if self.metrics is not None:
            result["metrics"] = self.metrics
        if self.validation is not None:
            result["validation"] = self.validation
        return result


def _generate_chunk_task(
    processor: BatchProcessor,
    chunk_number: int,
    total_chunks: int,
    first: int,
    last: int,
    template: GroupTemplate | None,
) -> Chunk:
    """Module-level entry point so process pools can pickle the call."""
    return processor.generate_chunk(chunk_number, total_chunks, first, last, template)


class BatchProcessor:
    """
    Generates all promotions for store ranges of a hierarchy.

    Attributes:
        generator: Record generator (catalog + run seed)
        hierarchy: Store and group tables
        weeks: Weeks generated for every store, in output order
    """

    def __init__(
        self,
        generator: RecordGenerator,
        hierarchy: StoreHierarchy,
        weeks: Sequence[int] = (40,),
    ) -> None:
        if not weeks:
            raise ConfigurationError("At least one week is required")
        if len(set(weeks)) != len(weeks):
            raise ConfigurationError(f"Duplicate weeks in {list(weeks)}")
        self.generator = generator
        self.hierarchy = hierarchy
        self.weeks = list(weeks)

    @property
    def products_per_store(self) -> int:
        """Products generated per store per week."""
        return self.generator.catalog.products_per_store

    @property
    def records_per_store(self) -> int:
        return self.products_per_store * len(self.weeks)

    def expected_records(self, first: int, last: int) -> int:
        return (last - first + 1) * self.records_per_store

    # =========================================================================
    # Generation
    # =========================================================================

    def resolve_template(self, template: str | GroupTemplate | None) -> GroupTemplate | None:
        """
        Resolve a template argument.

        None means every store uses its own group's template; a string names
        a catalog template applied to the whole batch.
        """
        if template is None or isinstance(template, GroupTemplate):
            return template
        return self.generator.catalog.get_group_template(template)

    def generate_store(self, index: int, template: GroupTemplate | None = None) -> list[PromotionRecord]:
        """All records for one store across every configured week."""
        store = self.hierarchy.store_at(index)
        if template is None:
            template = self.hierarchy.group_for(store).template
        records: list[PromotionRecord] = []
        for week in self.weeks:
            records.extend(self.generator.generate_store_week(store, week, template))
        return records

    def generate_chunk(
        self,
        chunk_number: int,
        total_chunks: int,
        first: int,
        last: int,
        template: GroupTemplate | None = None,
    ) -> Chunk:
        """Generate stores first..last (inclusive) as one chunk."""
        start = time.perf_counter()
        store_ids: list[str] = []
        promotions: list[PromotionRecord] = []
        for index in range(first, last + 1):
            store_ids.append(self.hierarchy.store_at(index).store_id)
            promotions.extend(self.generate_store(index, template))
        elapsed_ms = (time.perf_counter() - start) * 1000
        return Chunk(
            chunk_number=chunk_number,
            total_chunks=total_chunks,
            store_ids=store_ids,
            promotions=promotions,
            processing_time_ms=elapsed_ms,
        )

    def chunk_bounds(self, first: int, last: int, chunk_size: int | None = None) -> list[tuple[int, int]]:
        """
        Split an inclusive store range into chunk bounds.

        Raises:
            ConfigurationError: On an empty/out-of-range span or bad chunk size
        """
        self._check_range(first, last)
        span = last - first + 1
        if chunk_size is None:
            chunk_size = span
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        total_chunks = math.ceil(span / chunk_size)
        return [
            (first + n * chunk_size, min(last, first + (n + 1) * chunk_size - 1))
            for n in range(total_chunks)
        ]

    def iter_chunks(
        self,
        first: int,
        last: int,
        chunk_size: int | None = None,
        template: str | GroupTemplate | None = None,
        workers: int = 1,
        use_processes: bool = False,
    ) -> Iterator[Chunk]:
        """
        Lazily yield chunks covering first..last in chunk-number order.

        Bounds and template are validated when this is called, not on the
        first next().

        Args:
            first: First store index (1-based, inclusive)
            last: Last store index (inclusive)
            chunk_size: Stores per chunk (None = one chunk)
            template: Group template override (see resolve_template)
            workers: Pool size; 1 generates in the calling thread
            use_processes: Use a process pool instead of threads

        Yields:
            Chunk objects, chunk_number 1..total_chunks
        """
        bounds = self.chunk_bounds(first, last, chunk_size)
        resolved = self.resolve_template(template)
        if workers < 1:
            raise ConfigurationError(f"workers must be positive, got {workers}")
        if workers == 1:
            return self._sequential_chunks(bounds, resolved)
        return self._parallel_chunks(bounds, resolved, workers, use_processes)

    def _sequential_chunks(
        self,
        bounds: list[tuple[int, int]],
        template: GroupTemplate | None,
    ) -> Iterator[Chunk]:
        total = len(bounds)
        for number, (lo, hi) in enumerate(bounds, start=1):
            yield self.generate_chunk(number, total, lo, hi, template)

    def _parallel_chunks(
        self,
        bounds: list[tuple[int, int]],
        template: GroupTemplate | None,
        workers: int,
        use_processes: bool,
    ) -> Iterator[Chunk]:
        """
        Generate chunks on a pool and yield them in chunk order.

        At most workers * PARALLEL_WINDOW_PER_WORKER chunks are in flight, so
        memory stays bounded however slowly the consumer pulls.
        """
        total = len(bounds)
        window = workers * PARALLEL_WINDOW_PER_WORKER
        executor: Executor
        if use_processes:
            executor = ProcessPoolExecutor(max_workers=workers)
        else:
            executor = ThreadPoolExecutor(max_workers=workers)

        pending: deque[Future] = deque()
        upcoming = iter(enumerate(bounds, start=1))

        def submit_next() -> None:
            item = next(upcoming, None)
            if item is not None:
                number, (lo, hi) = item
                pending.append(
                    executor.submit(_generate_chunk_task, self, number, total, lo, hi, template)
                )

        try:
            for _ in range(window):
                submit_next()
            while pending:
                chunk = pending.popleft().result()
                submit_next()
                yield chunk
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    # =========================================================================
    # Batch
    # =========================================================================

    def process_batch(
        self,
        first_store_index: int,
        last_store_index: int,
        template: str | GroupTemplate | None = None,
        options: BatchOptions | None = None,
    ) -> BatchResult:
        """
        Generate every promotion for an inclusive store range.

        Self-check failures are reported in metadata["validation_failures"],
        never raised; the caller decides whether a partial batch is usable.

        Args:
            first_store_index: First store (1-based, inclusive)
            last_store_index: Last store (inclusive)
            template: Group template override; None uses each store's group
            options: Chunking, metrics and validation options

        Returns:
            BatchResult with store ids, promotions and metadata

        Raises:
            ConfigurationError: On invalid range, chunk size or template
        """
        options = options or BatchOptions()
        resolved = self.resolve_template(template)
        chunks = self.iter_chunks(
            first_store_index,
            last_store_index,
            chunk_size=options.chunk_size,
            template=resolved,
            workers=options.workers,
            use_processes=options.use_processes,
        )

        # Leave a caller's own tracing session running
        owns_tracing = options.memory_monitoring and not tracemalloc.is_tracing()
        if owns_tracing:
            tracemalloc.start()
        elif options.memory_monitoring:
            tracemalloc.reset_peak()
        start = time.perf_counter()

        store_ids: list[str] = []
        promotions: list[PromotionRecord] = []
        chunks_processed = 0
        try:
            for chunk in chunks:
                store_ids.extend(chunk.store_ids)
                promotions.extend(chunk.promotions)
                chunks_processed += 1
                if options.progress:
                    print(
                        f"  Chunk {chunk.chunk_number}/{chunk.total_chunks}: "
                        f"{chunk.stores_in_chunk} stores, {len(chunk.promotions):,} promotions "
                        f"({chunk.processing_time_ms:.1f}ms)"
                    )
        finally:
            peak_bytes = None
            if options.memory_monitoring:
                _, peak_bytes = tracemalloc.get_traced_memory()
                if owns_tracing:
                    tracemalloc.stop()

        elapsed_ms = (time.perf_counter() - start) * 1000
        per_second = len(promotions) / (elapsed_ms / 1000) if elapsed_ms > 0 else 0.0

        metadata: dict[str, Any] = {
            "stores_processed": len(store_ids),
            "weeks_processed": len(self.weeks),
            "chunks_processed": chunks_processed,
            "chunk_size": options.chunk_size or len(store_ids),
            "template": resolved.key if resolved else None,
            "processing_time_ms": round(elapsed_ms, 3),
            "promotions_per_second": round(per_second, 1),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "validation_failures": [],
        }
        if peak_bytes is not None:
            metadata["memory_peak_mb"] = round(peak_bytes / (1024 * 1024), 2)

        result = BatchResult(store_ids=store_ids, promotions=promotions, metadata=metadata)

        if options.include_metrics:
            # Local import: aggregation depends on the generation package
            from ..aggregation import AggregationEngine

            engine = AggregationEngine(promotions)
            result.metrics = {
                **engine.summary(),
                "by_week": [b.to_dict() for b in engine.by_week()],
            }

        if options.include_validation:
            result.validation = self.self_check(first_store_index, last_store_index, result)
            metadata["validation_failures"] = [
                name for name, passed in result.validation["checks"].items() if not passed
            ]

        return result

    def self_check(self, first: int, last: int, result: BatchResult) -> dict[str, Any]:
        """
        Lightweight count/coverage check of a batch result.

        Returns:
            Dict with expected/actual counts, per-check booleans and all_valid
        """
        expected_stores = last - first + 1
        expected_promotions = self.expected_records(first, last)
        unique_stores = {p.store_id for p in result.promotions}
        weeks_seen = {p.week_id for p in result.promotions}
        complete = sum(
            1
            for p in result.promotions
            if p.card_id and p.store_id and p.product_name and p.category
        )

        checks = {
            "promotion_count": len(result.promotions) == expected_promotions,
            "stores_match": len(unique_stores) == expected_stores,
            "weeks_match": weeks_seen == set(self.weeks),
            "data_completeness": complete == len(result.promotions),
        }
        return {
            "expected_promotions": expected_promotions,
            "actual_promotions": len(result.promotions),
            "expected_stores": expected_stores,
            "actual_stores": len(unique_stores),
            "checks": checks,
            "all_valid": all(checks.values()),
        }

    def _check_range(self, first: int, last: int) -> None:
        if first < 1 or last > self.hierarchy.store_count or first > last:
            raise ConfigurationError(
                f"Store range {first}..{last} invalid for "
                f"{self.hierarchy.store_count} stores"
            )
