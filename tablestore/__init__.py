"""Tablestore - segmented reads and bulk writes over partitioned key-value tables."""

from .api import TableStorage
from .config import (
    MAX_BATCH_SIZE,
    MAX_PAGE_SIZE,
    StorageSettings,
)
from .core import (
    BatchDispatchError,
    BatchInsertMethod,
    ConfigurationError,
    ContinuationToken,
    EntityConflictError,
    EntityNotFoundError,
    EntityWriteResult,
    PreconditionFailedError,
    ProviderError,
    QueryComparison,
    Segment,
    TableHandle,
    TableOperator,
    TableQuery,
    TableStoreError,
    ThrottledError,
    UpdateMode,
    ValidationError,
    combine_filters,
    generate_filter_condition,
)
from .io import AzureTableService, InMemoryTableService
from .models import TableEntity
from .runtime import (
    BatchDispatcher,
    BatchPolicy,
    BatchResult,
    PagePolicy,
    ScanResult,
    SegmentScanner,
    TableRegistry,
)

__version__ = "0.1.0"

__all__ = [
    # Facade
    "TableStorage",
    # Configuration
    "StorageSettings",
    "MAX_PAGE_SIZE",
    "MAX_BATCH_SIZE",
    # Models and queries
    "TableEntity",
    "TableQuery",
    "ContinuationToken",
    "Segment",
    "EntityWriteResult",
    "generate_filter_condition",
    "combine_filters",
    # Enums
    "BatchInsertMethod",
    "UpdateMode",
    "QueryComparison",
    "TableOperator",
    # Runtime
    "SegmentScanner",
    "BatchDispatcher",
    "PagePolicy",
    "BatchPolicy",
    "ScanResult",
    "BatchResult",
    "TableRegistry",
    # Handles
    "TableHandle",
    "AzureTableService",
    "InMemoryTableService",
    # Exceptions
    "TableStoreError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "EntityNotFoundError",
    "EntityConflictError",
    "PreconditionFailedError",
    "ThrottledError",
    "BatchDispatchError",
]
