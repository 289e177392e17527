"""Segmented read execution: full scans and bounded-count queries.

This module provides the SegmentScanner class that drains a cursor-paged
SegmentSource, either to exhaustion or up to a requested number of entities.
Round trips are strictly sequential since each depends on the previous
page's cursor.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from time import perf_counter
from typing import Any

from ...core.base import SegmentSource
from ...core.query import ContinuationToken, Segment, TableQuery
from .definitions import PagePolicy, ScanResult
from .planners import next_page_cap
from .telemetry import log_page_fetch_error, log_page_fetched, log_scan_complete


class SegmentScanner:
    """Drains a SegmentSource into complete or count-bounded results.

    The scanner is stateless per call; the only mutable input is the query
    descriptor, whose ``page_size`` is rewritten by ``take``.
    """

    def __init__(self, policy: PagePolicy | None = None, *, table: str = "unknown") -> None:
        """Initialize segment scanner.

        Args:
            policy: Page policy (defaults to the provider limit of 1000)
            table: Table name used in telemetry
        """
        self._policy = policy or PagePolicy()
        self._table = table

    async def iter_segments(
        self,
        source: SegmentSource,
        query: TableQuery,
    ) -> AsyncIterator[Segment[Any]]:
        """Yield every segment of a query, starting a fresh cursor chain.

        Args:
            source: Segment source to read from
            query: Query descriptor (``take`` is ignored)

        Yields:
            Segments in provider iteration order
        """
        cursor: ContinuationToken | None = None
        page_index = 0

        while True:
            segment = await self._fetch(source, query, cursor, page_index)
            yield segment
            page_index += 1
            cursor = segment.continuation
            if cursor is None:
                return

    async def iter_entities(
        self,
        source: SegmentSource,
        query: TableQuery,
    ) -> AsyncIterator[Any]:
        """Lazily yield every matching entity regardless of page boundaries."""
        async for segment in self.iter_segments(source, query):
            for entity in segment.entities:
                yield entity

    async def scan(self, source: SegmentSource, query: TableQuery) -> ScanResult:
        """Collect every matching entity.

        A failing fetch propagates; entities gathered before it are dropped.

        Returns:
            ScanResult with all entities and the number of pages fetched
        """
        started = perf_counter()
        entities: list[Any] = []
        pages = 0

        async for segment in self.iter_segments(source, query):
            entities.extend(segment.entities)
            pages += 1

        result = ScanResult(entities=entities, pages_fetched=pages)
        log_scan_complete(
            table=self._table,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def take(self, source: SegmentSource, query: TableQuery, count: int) -> ScanResult:
        """Collect exactly ``min(count, available)`` entities.

        Each round trip caps the page at ``min(remaining, max_page_size)`` and
        ``remaining`` is decreased by that cap, not by the rows received. The
        loop ends once ``count`` entities are in hand (even if a cursor
        remains) or the cursor runs out.

        Args:
            source: Segment source to read from
            query: Query descriptor; its ``page_size`` is overwritten per
                round trip and restored on return
            count: Requested number of entities (>= 0)

        Returns:
            ScanResult with at most ``count`` entities

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError("count must be >= 0")

        started = perf_counter()
        entities: list[Any] = []
        remaining = count
        cursor: ContinuationToken | None = None
        page_index = 0

        original_page_size = query.page_size
        try:
            while len(entities) < count:
                cap = next_page_cap(remaining, self._policy)
                if cap == 0:
                    # Short pages used up the budget while the provider still had rows
                    break

                query.page_size = cap
                segment = await self._fetch(source, query, cursor, page_index)
                entities.extend(segment.entities)
                remaining -= cap
                page_index += 1

                cursor = segment.continuation
                if cursor is None:
                    break
        finally:
            query.page_size = original_page_size

        result = ScanResult(entities=entities, pages_fetched=page_index, requested_count=count)
        log_scan_complete(
            table=self._table,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def execute(self, source: SegmentSource, query: TableQuery) -> ScanResult:
        """Run ``take`` when the query is bounded, ``scan`` otherwise."""
        if query.take is None:
            return await self.scan(source, query)
        return await self.take(source, query, query.take)

    async def _fetch(
        self,
        source: SegmentSource,
        query: TableQuery,
        cursor: ContinuationToken | None,
        page_index: int,
    ) -> Segment[Any]:
        fetch_start = perf_counter()
        try:
            segment = await source.fetch_segment(query, cursor)
        except Exception as e:
            log_page_fetch_error(
                table=self._table,
                page_index=page_index,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise

        log_page_fetched(
            table=self._table,
            page_index=page_index,
            rows=len(segment.entities),
            page_size=query.page_size,
            has_more=segment.continuation is not None,
            latency_ms=(perf_counter() - fetch_start) * 1000.0,
        )
        return segment
