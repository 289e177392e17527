"""Core components."""

from .base import BatchWriter, SegmentSource, TableHandle, TableHandleFactory
from .enums import BatchInsertMethod, QueryComparison, TableOperator, UpdateMode
from .exceptions import (
    BatchDispatchError,
    ConfigurationError,
    EntityConflictError,
    EntityNotFoundError,
    PreconditionFailedError,
    ProviderError,
    TableStoreError,
    ThrottledError,
    ValidationError,
)
from .operations import (
    OPERATION_BUILDERS,
    BatchOperation,
    EntityWriteResult,
    as_entity,
    build_batch,
)
from .query import (
    ContinuationToken,
    Segment,
    TableQuery,
    combine_filters,
    format_filter_value,
    generate_filter_condition,
    negate_filter,
)

__all__ = [
    "SegmentSource",
    "BatchWriter",
    "TableHandle",
    "TableHandleFactory",
    "BatchInsertMethod",
    "UpdateMode",
    "QueryComparison",
    "TableOperator",
    "TableStoreError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "EntityNotFoundError",
    "EntityConflictError",
    "PreconditionFailedError",
    "ThrottledError",
    "BatchDispatchError",
    "OPERATION_BUILDERS",
    "BatchOperation",
    "EntityWriteResult",
    "as_entity",
    "build_batch",
    "ContinuationToken",
    "Segment",
    "TableQuery",
    "combine_filters",
    "format_filter_value",
    "generate_filter_condition",
    "negate_filter",
]
