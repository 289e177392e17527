"""Unit tests for segmented reads (full scans and bounded queries)."""

from __future__ import annotations

import pytest

from tablestore.core import ContinuationToken, ProviderError, Segment, TableQuery
from tablestore.io import InMemoryTableHandle
from tablestore.runtime.paging import PagePolicy, SegmentScanner


class RecordingSource:
    """Segment source over ``available`` rows that records every request."""

    def __init__(
        self,
        available: int,
        *,
        max_page_size: int = 1000,
        short_pages: list[int] | None = None,
        fail_on_call: int | None = None,
    ) -> None:
        self.rows = [{"PartitionKey": "p", "RowKey": f"{i:05d}", "n": i} for i in range(available)]
        self.max_page_size = max_page_size
        self.short_pages = list(short_pages or [])
        self.fail_on_call = fail_on_call
        self.requested: list[int | None] = []
        self.cursors: list[ContinuationToken | None] = []

    async def fetch_segment(self, query, cursor=None):
        self.requested.append(query.page_size)
        self.cursors.append(cursor)
        if self.fail_on_call is not None and len(self.requested) == self.fail_on_call:
            raise ProviderError("service unavailable", status_code=503)

        start = int(cursor.next_row_key) if cursor is not None else 0
        size = min(query.page_size or self.max_page_size, self.max_page_size)
        if self.short_pages:
            size = min(size, self.short_pages.pop(0))
        end = min(start + size, len(self.rows))
        continuation = None
        if end < len(self.rows):
            continuation = ContinuationToken(next_partition_key="p", next_row_key=f"{end:05d}")
        return Segment(entities=self.rows[start:end], continuation=continuation)


class TestFullScan:
    """Test SegmentScanner.scan and iter_entities."""

    @pytest.mark.asyncio
    async def test_scan_collects_every_page(self):
        """Test a scan follows the cursor until it runs out."""
        source = RecordingSource(2500)
        result = await SegmentScanner().scan(source, TableQuery())

        assert result.total_entities == 2500
        assert result.pages_fetched == 3
        assert [row["n"] for row in result.entities] == list(range(2500))
        assert source.cursors[0] is None
        assert source.cursors[1] == ContinuationToken("p", "01000")

    @pytest.mark.asyncio
    async def test_scan_empty_table_fetches_once(self):
        """Test an empty table costs exactly one round trip."""
        source = RecordingSource(0)
        result = await SegmentScanner().scan(source, TableQuery())

        assert result.entities == []
        assert result.pages_fetched == 1

    @pytest.mark.asyncio
    async def test_scan_restarts_from_beginning(self):
        """Test repeated scans are independent and return the same rows."""
        source = RecordingSource(1200)
        scanner = SegmentScanner()

        first = await scanner.scan(source, TableQuery())
        second = await scanner.scan(source, TableQuery())

        assert first.entities == second.entities
        assert source.cursors[0] is None
        assert source.cursors[2] is None

    @pytest.mark.asyncio
    async def test_scan_failure_propagates_without_partial_result(self):
        """Test a failing page aborts the scan."""
        source = RecordingSource(2500, fail_on_call=2)

        with pytest.raises(ProviderError) as exc_info:
            await SegmentScanner().scan(source, TableQuery())

        assert exc_info.value.status_code == 503
        assert len(source.requested) == 2

    @pytest.mark.asyncio
    async def test_iter_entities_is_lazy(self):
        """Test the iterator fetches the next page only when needed."""
        source = RecordingSource(2500)
        seen = []

        async for row in SegmentScanner().iter_entities(source, TableQuery()):
            seen.append(row)
            if len(seen) == 10:
                break

        assert len(seen) == 10
        assert len(source.requested) == 1

    @pytest.mark.asyncio
    async def test_iter_segments_yields_provider_pages(self):
        """Test segments are yielded unchanged, in order."""
        source = RecordingSource(250, max_page_size=100)
        sizes = [len(segment) async for segment in SegmentScanner().iter_segments(source, TableQuery())]

        assert sizes == [100, 100, 50]


class TestBoundedQuery:
    """Test SegmentScanner.take."""

    @pytest.mark.asyncio
    async def test_zero_count_fetches_nothing(self):
        """Test take(0) returns immediately without a round trip."""
        source = RecordingSource(50)
        result = await SegmentScanner().take(source, TableQuery(), 0)

        assert result.entities == []
        assert result.pages_fetched == 0
        assert source.requested == []

    @pytest.mark.asyncio
    async def test_exact_page_limit_is_one_fetch(self):
        """Test 1000 of 1000 takes a single capped fetch."""
        source = RecordingSource(1000)
        result = await SegmentScanner().take(source, TableQuery(), 1000)

        assert result.total_entities == 1000
        assert source.requested == [1000]

    @pytest.mark.asyncio
    async def test_caps_follow_remaining_budget(self):
        """Test 1500 of 2500 fetches pages of 1000 then 500."""
        source = RecordingSource(2500)
        query = TableQuery()
        result = await SegmentScanner().take(source, query, 1500)

        assert source.requested == [1000, 500]
        assert [row["n"] for row in result.entities] == list(range(1500))
        assert result.requested_count == 1500
        assert query.page_size is None

    @pytest.mark.asyncio
    async def test_one_past_page_limit(self):
        """Test 1001 of 1001 fetches 1000 then 1."""
        source = RecordingSource(1001)
        result = await SegmentScanner().take(source, TableQuery(), 1001)

        assert source.requested == [1000, 1]
        assert result.total_entities == 1001

    @pytest.mark.asyncio
    async def test_stops_with_cursor_remaining(self):
        """Test the loop ends once the count is met even if more rows exist."""
        source = RecordingSource(5000)
        result = await SegmentScanner().take(source, TableQuery(), 10)

        assert source.requested == [10]
        assert result.total_entities == 10

    @pytest.mark.asyncio
    async def test_fewer_available_than_requested(self):
        """Test the result is everything available when the table runs out."""
        source = RecordingSource(300)
        result = await SegmentScanner().take(source, TableQuery(), 1000)

        assert source.requested == [1000]
        assert result.total_entities == 300

    @pytest.mark.asyncio
    async def test_short_pages_consume_budget_by_cap(self):
        """Test the budget drops by the requested cap, not the rows received."""
        source = RecordingSource(3000, short_pages=[600])
        result = await SegmentScanner().take(source, TableQuery(), 1500)

        # 600 from the short page + 500 from the second capped page
        assert source.requested == [1000, 500]
        assert result.total_entities == 1100
        assert result.pages_fetched == 2

    @pytest.mark.asyncio
    async def test_smaller_page_policy(self):
        """Test a lower page policy splits the budget further."""
        source = RecordingSource(1000)
        scanner = SegmentScanner(PagePolicy(max_page_size=100))
        result = await scanner.take(source, TableQuery(), 250)

        assert source.requested == [100, 100, 50]
        assert result.total_entities == 250

    @pytest.mark.asyncio
    async def test_descriptor_reusable_after_take(self):
        """Test a later scan with the same descriptor pages at full size."""
        source = RecordingSource(2500)
        scanner = SegmentScanner()
        query = TableQuery(page_size=None)

        await scanner.take(source, query, 3)
        result = await scanner.scan(source, query)

        assert query.page_size is None
        assert source.requested == [3, None, None, None]
        assert result.total_entities == 2500

    @pytest.mark.asyncio
    async def test_page_size_restored_after_failure(self):
        """Test a failed bounded query leaves the caller's page size intact."""
        source = RecordingSource(2500, fail_on_call=2)
        query = TableQuery(page_size=200)

        with pytest.raises(ProviderError):
            await SegmentScanner().take(source, query, 1500)

        assert source.requested == [1000, 500]
        assert query.page_size == 200

    @pytest.mark.asyncio
    async def test_negative_count_rejected(self):
        """Test negative counts raise ValueError."""
        with pytest.raises(ValueError, match="count"):
            await SegmentScanner().take(RecordingSource(1), TableQuery(), -1)

    @pytest.mark.asyncio
    async def test_execute_routes_on_take(self):
        """Test execute bounds only when take is set."""
        scanner = SegmentScanner()

        bounded = await scanner.execute(RecordingSource(2500), TableQuery(take=5))
        unbounded = await scanner.execute(RecordingSource(2500), TableQuery())

        assert bounded.total_entities == 5
        assert bounded.requested_count == 5
        assert unbounded.total_entities == 2500
        assert unbounded.requested_count is None


class TestScanAgainstTable:
    """Test scans over the in-memory table with irregular page sizes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_sizes", [[1], [7, 3, 50], [1000], [999, 1]])
    async def test_no_duplicates_or_omissions(self, page_sizes):
        """Test every row is seen exactly once whatever the page sizes."""
        table = InMemoryTableHandle("orders", page_sizes=page_sizes)
        for i in range(250):
            await table.insert_entity({"PartitionKey": f"p{i % 3}", "RowKey": f"{i:05d}"})

        result = await SegmentScanner().scan(table, TableQuery())
        keys = [(row["PartitionKey"], row["RowKey"]) for row in result.entities]

        assert len(keys) == 250
        assert keys == sorted(set(keys))

    @pytest.mark.asyncio
    async def test_bounded_query_with_filter(self):
        """Test a short filtered page still spends its whole cap."""
        table = InMemoryTableHandle("orders", page_sizes=[4])
        for i in range(40):
            await table.insert_entity({"PartitionKey": "p", "RowKey": f"{i:05d}", "n": i})

        result = await SegmentScanner().take(table, TableQuery(filter="n ge 30"), 5)

        assert [row["n"] for row in result.entities] == [30, 31, 32, 33]
