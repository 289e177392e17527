"""Unit tests for page-cap and chunk planning."""

from __future__ import annotations

import pytest

from tablestore.runtime.paging import BatchPlanner, BatchPolicy, PagePolicy, next_page_cap


class TestNextPageCap:
    """Test next_page_cap."""

    @pytest.mark.parametrize(
        "remaining,expected",
        [(0, 0), (1, 1), (999, 999), (1000, 1000), (1001, 1000), (-5, 0)],
    )
    def test_cap(self, remaining, expected):
        """Test the cap is min(remaining, limit) and never negative."""
        assert next_page_cap(remaining, PagePolicy()) == expected

    def test_custom_policy(self):
        """Test the cap honors a lower page limit."""
        assert next_page_cap(500, PagePolicy(max_page_size=200)) == 200


class TestBatchPlanner:
    """Test BatchPlanner."""

    def test_plan_preserves_order_and_offsets(self):
        """Test chunks are contiguous slices with their input offsets."""
        chunks = BatchPlanner().plan(range(250))

        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert [c.start for c in chunks] == [0, 100, 200]
        assert [len(c) for c in chunks] == [100, 100, 50]
        assert [e for c in chunks for e in c.entities] == list(range(250))

    def test_plan_empty(self):
        """Test no input plans no chunks."""
        assert BatchPlanner().plan([]) == []

    def test_plan_consumes_generators(self):
        """Test one-shot iterables are planned correctly."""
        chunks = BatchPlanner(BatchPolicy(max_batch_size=2)).plan(i for i in range(5))
        assert [c.entities for c in chunks] == [(0, 1), (2, 3), (4,)]


class TestPolicies:
    """Test policy validation."""

    def test_page_policy_rejects_zero(self):
        with pytest.raises(ValueError):
            PagePolicy(max_page_size=0)

    def test_batch_policy_rejects_bad_values(self):
        with pytest.raises(ValueError):
            BatchPolicy(max_batch_size=0)
        with pytest.raises(ValueError):
            BatchPolicy(max_concurrency=0)
