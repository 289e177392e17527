"""Planning logic for page caps and batch chunks.

This module decides how a logical request is split into provider-legal
round trips: the per-page cap of a bounded query, and the chunk layout of a
batch write.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .definitions import BatchChunk, BatchPolicy, PagePolicy
from .telemetry import log_batch_plan


def next_page_cap(remaining: int, policy: PagePolicy) -> int:
    """Cap for the next page of a bounded query.

    Args:
        remaining: Entities still budgeted for the query
        policy: Provider page policy

    Returns:
        ``min(remaining, policy.max_page_size)``, never negative
    """
    return max(0, min(remaining, policy.max_page_size))


class BatchPlanner:
    """Splits an entity collection into consecutive provider-legal chunks.

    Chunks preserve input order: concatenating the chunks in index order
    gives back the input. Only the size limit is enforced; entities are not
    regrouped by partition key.
    """

    def __init__(self, policy: BatchPolicy | None = None, *, table: str = "unknown") -> None:
        """Initialize batch planner.

        Args:
            policy: Batch policy (defaults to the provider limit of 100)
            table: Table name used in telemetry
        """
        self._policy = policy or BatchPolicy()
        self._table = table

    def plan(self, entities: Iterable[Any], *, method: str = "insert") -> list[BatchChunk]:
        """Plan chunks for a batch write.

        Args:
            entities: Entities to write (any iterable; consumed once)
            method: Insert method name, for telemetry

        Returns:
            ``ceil(len(entities) / max_batch_size)`` chunks; empty for no input
        """
        items = tuple(entities)
        size = self._policy.max_batch_size

        chunks: list[BatchChunk] = []
        start = 0
        chunk_index = 0

        while start < len(items):
            chunks.append(
                BatchChunk(
                    chunk_index=chunk_index,
                    start=start,
                    entities=items[start : start + size],
                )
            )
            start += size
            chunk_index += 1

        log_batch_plan(
            table=self._table,
            total_chunks=len(chunks),
            total_entities=len(items),
            method=method,
        )

        return chunks
