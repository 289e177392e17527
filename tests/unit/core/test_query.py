"""Unit tests for query descriptors and filter builders."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from uuid import UUID

import pytest

from tablestore.core import (
    ContinuationToken,
    QueryComparison,
    Segment,
    TableOperator,
    TableQuery,
    combine_filters,
    format_filter_value,
    generate_filter_condition,
    negate_filter,
)


class TestTableQuery:
    """Test TableQuery validation."""

    def test_defaults(self):
        query = TableQuery()
        assert query.filter is None
        assert query.take is None
        assert not query.is_bounded

    def test_bounded(self):
        assert TableQuery(take=0).is_bounded

    def test_negative_take_rejected(self):
        with pytest.raises(ValueError, match="take"):
            TableQuery(take=-1)

    def test_zero_page_size_rejected(self):
        with pytest.raises(ValueError, match="page_size"):
            TableQuery(page_size=0)


class TestSegment:
    """Test Segment."""

    def test_has_more(self):
        assert Segment(entities=[1], continuation=ContinuationToken("p")).has_more
        assert not Segment(entities=[1, 2]).has_more
        assert len(Segment(entities=[1, 2])) == 2


class TestFormatFilterValue:
    """Test OData literal rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("eu", "'eu'"),
            ("o'brien", "'o''brien'"),
            (True, "true"),
            (42, "42"),
            (2**40, f"{2**40}L"),
            (1.5, "1.5"),
            (UUID("0f8fad5b-d9cb-469f-a165-70867728950e"), "guid'0f8fad5b-d9cb-469f-a165-70867728950e'"),
            (b"\x01\xff", "X'01ff'"),
            (datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC), "datetime'2024-01-02T03:04:05Z'"),
        ],
    )
    def test_literals(self, value, expected):
        assert format_filter_value(value) == expected

    def test_datetime_normalized_to_utc(self):
        """Test offsets are converted and naive values assumed UTC."""
        aware = datetime(2024, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_filter_value(aware) == "datetime'2024-01-02T03:00:00Z'"
        assert format_filter_value(datetime(2024, 1, 2)) == "datetime'2024-01-02T00:00:00Z'"

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            format_filter_value(object())


class TestFilterBuilders:
    """Test filter composition helpers."""

    def test_generate_filter_condition(self):
        assert generate_filter_condition("PartitionKey", QueryComparison.EQUAL, "eu") == "PartitionKey eq 'eu'"
        assert generate_filter_condition("amount", "ge", 10) == "amount ge 10"

    def test_combine_filters(self):
        left = generate_filter_condition("PartitionKey", "eq", "eu")
        right = generate_filter_condition("amount", "lt", 5)

        assert combine_filters(left, TableOperator.AND, right) == "(PartitionKey eq 'eu') and (amount lt 5)"
        assert combine_filters(left, "or", right) == "(PartitionKey eq 'eu') or (amount lt 5)"

    def test_combine_rejects_not(self):
        with pytest.raises(ValueError):
            combine_filters("a eq 1", TableOperator.NOT, "b eq 2")

    def test_negate(self):
        assert negate_filter("a eq 1") == "not (a eq 1)"

    def test_unknown_comparison(self):
        with pytest.raises(ValueError):
            generate_filter_condition("a", "like", 1)
