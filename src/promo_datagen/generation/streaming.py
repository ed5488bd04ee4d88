"""
StreamingIterator - Lazy, forward-only chunk stream over a whole hierarchy.

Holds at most one chunk (or, in parallel mode, a bounded window of chunks)
in memory, so a consumer can process an arbitrarily large logical dataset
with O(chunk_size) peak memory.

The iterator is single-use: once started it cannot be restarted, and
iter() on it returns the same (possibly exhausted) iterator. Stopping early
at a chunk boundary is supported by simply not pulling further chunks;
close() releases a parallel worker pool immediately.

Usage:
    stream = StreamingIterator(processor, total_stores=50, chunk_size=10)
    for chunk in stream:
        writer.write(chunk)          # chunk.chunk_number 1..5
"""

from __future__ import annotations

import math
from typing import Iterator

from ..errors import ConfigurationError
from .batch import BatchProcessor, Chunk
from .catalog import GroupTemplate


class StreamingIterator:
    """
    Iterator of Chunk objects covering stores 1..total_stores.

    Attributes:
        total_stores: Stores covered by the stream
        chunk_size: Stores per chunk (the last chunk may be smaller)
        total_chunks: Number of chunks the stream yields
        chunks_yielded: Chunks delivered so far
    """

    def __init__(
        self,
        processor: BatchProcessor,
        total_stores: int | None = None,
        chunk_size: int = 10,
        template: str | GroupTemplate | None = None,
        workers: int = 1,
        use_processes: bool = False,
    ) -> None:
        if total_stores is None:
            total_stores = processor.hierarchy.store_count
        if total_stores < 1:
            raise ConfigurationError(f"total_stores must be positive, got {total_stores}")
        if chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")

        self.total_stores = total_stores
        self.chunk_size = chunk_size
        self.total_chunks = math.ceil(total_stores / chunk_size)
        self.chunks_yielded = 0
        self._chunks: Iterator[Chunk] = processor.iter_chunks(
            1,
            total_stores,
            chunk_size=chunk_size,
            template=template,
            workers=workers,
            use_processes=use_processes,
        )

    def __iter__(self) -> StreamingIterator:
        return self

    def __next__(self) -> Chunk:
        chunk = next(self._chunks)
        self.chunks_yielded += 1
        return chunk

    @property
    def exhausted(self) -> bool:
        return self.chunks_yielded >= self.total_chunks

    def close(self) -> None:
        """Stop the stream early; subsequent next() raises StopIteration."""
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> StreamingIterator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"StreamingIterator(total_stores={self.total_stores}, "
            f"chunk_size={self.chunk_size}, "
            f"chunks={self.chunks_yielded}/{self.total_chunks})"
        )
