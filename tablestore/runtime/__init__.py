"""Runtime orchestration components."""

from .paging import (
    BatchDispatcher,
    BatchPolicy,
    BatchResult,
    PagePolicy,
    ScanResult,
    SegmentScanner,
)
from .table_registry import TableRegistry

__all__ = [
    "SegmentScanner",
    "BatchDispatcher",
    "PagePolicy",
    "BatchPolicy",
    "ScanResult",
    "BatchResult",
    "TableRegistry",
]
