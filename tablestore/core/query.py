"""Query descriptor, continuation cursor and segment types.

These are the shared shapes passed between the paging runtime and the table
handles. The runtime never looks inside a ``ContinuationToken``: handles
produce it, the runtime passes it back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from .enums import QueryComparison, TableOperator

E = TypeVar("E")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class ContinuationToken:
    """Opaque resumption point for a segmented query.

    Attributes:
        next_partition_key: Partition key the next segment starts from
        next_row_key: Row key the next segment starts from (None at partition start)
    """

    next_partition_key: str
    next_row_key: str | None = None


@dataclass
class TableQuery:
    """Filter plus optional requested count.

    ``take`` is the total number of entities the caller wants (None means
    unbounded). ``page_size`` is the per-request cap; the bounded query
    engine rewrites it on every round trip, so a descriptor must not be shared
    between concurrent queries.

    Attributes:
        filter: OData filter expression (None matches every entity)
        select: Property names to project (None returns all properties)
        take: Requested total count (None = unbounded)
        page_size: Effective per-request cap (None = provider maximum)
    """

    filter: str | None = None
    select: list[str] | None = None
    take: int | None = None
    page_size: int | None = None

    def __post_init__(self) -> None:
        if self.take is not None and self.take < 0:
            raise ValueError("take must be >= 0")
        if self.page_size is not None and self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def is_bounded(self) -> bool:
        return self.take is not None


@dataclass(frozen=True)
class Segment(Generic[E]):
    """One bounded page of entities and the cursor for the next page."""

    entities: list[E] = field(default_factory=list)
    continuation: ContinuationToken | None = None

    @property
    def has_more(self) -> bool:
        """Returns True if the provider signalled further pages."""
        return self.continuation is not None

    def __len__(self) -> int:
        return len(self.entities)


def format_filter_value(value: Any) -> str:
    """Render a Python value as an OData literal.

    Args:
        value: str, bool, int, float, datetime, UUID or bytes

    Returns:
        Literal suitable for use in a filter expression

    Raises:
        TypeError: If the value type has no OData literal form
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if _INT32_MIN <= value <= _INT32_MAX:
            return str(value)
        return f"{value}L"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        stamp = value.astimezone(UTC).isoformat().replace("+00:00", "Z")
        return f"datetime'{stamp}'"
    if isinstance(value, UUID):
        return f"guid'{value}'"
    if isinstance(value, bytes | bytearray):
        return f"X'{bytes(value).hex()}'"
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    raise TypeError(f"Unsupported filter value type: {type(value).__name__}")


def generate_filter_condition(
    property_name: str,
    operation: QueryComparison | str,
    value: Any,
) -> str:
    """Build a single comparison, e.g. ``PartitionKey eq 'orders'``."""
    operation = QueryComparison(operation)
    return f"{property_name} {operation.value} {format_filter_value(value)}"


def combine_filters(left: str, operator: TableOperator | str, right: str) -> str:
    """Join two filter expressions with ``and``/``or``."""
    operator = TableOperator(operator)
    if operator is TableOperator.NOT:
        raise ValueError("'not' is unary; use negate_filter")
    return f"({left}) {operator.value} ({right})"


def negate_filter(expression: str) -> str:
    return f"not ({expression})"
