"""Paging and batching policy structures.

This module defines the data structures used to describe how segmented reads
and batch writes are bounded, and the results they produce.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...config import MAX_BATCH_SIZE, MAX_PAGE_SIZE
from ...core.operations import EntityWriteResult


@dataclass(frozen=True)
class PagePolicy:
    """Per-request read limit of the provider.

    Attributes:
        max_page_size: Maximum number of entities one fetch may return
    """

    max_page_size: int = MAX_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.max_page_size < 1:
            raise ValueError("max_page_size must be >= 1")


@dataclass(frozen=True)
class BatchPolicy:
    """Per-request write limit of the provider.

    Attributes:
        max_batch_size: Maximum number of entities in one batch call
        max_concurrency: Maximum chunk writes in flight (None = all at once)
    """

    max_batch_size: int = MAX_BATCH_SIZE
    max_concurrency: int | None = None

    def __post_init__(self) -> None:
        if self.max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1 or None")


@dataclass(frozen=True)
class BatchChunk:
    """Contiguous slice of the caller's input sized to the batch limit.

    Attributes:
        chunk_index: Zero-based submission position of this chunk
        start: Offset of the first entity in the caller's input
        entities: Entities of this chunk, in input order
    """

    chunk_index: int
    start: int
    entities: tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.entities)


@dataclass
class ScanResult:
    """Result of a full scan or bounded query.

    Attributes:
        entities: Entities in provider iteration order
        pages_fetched: Number of round trips performed
        requested_count: Requested count (None for a full scan)
    """

    entities: list[Any]
    pages_fetched: int
    requested_count: int | None = None

    @property
    def total_entities(self) -> int:
        return len(self.entities)


@dataclass
class BatchResult:
    """Result of a dispatched batch write.

    Attributes:
        results: Per-entity results, in input order
        chunks_dispatched: Number of batch calls issued
    """

    results: list[EntityWriteResult] = field(default_factory=list)
    chunks_dispatched: int = 0

    @property
    def total_entities(self) -> int:
        return len(self.results)
