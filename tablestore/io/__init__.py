"""Table handle implementations (REST and in-memory)."""

from .memory import InMemoryTableHandle, InMemoryTableService
from .odata import ODataFilterError, compile_filter
from .rest import AzureTableHandle, AzureTableService, HTTPClient

__all__ = [
    "AzureTableHandle",
    "AzureTableService",
    "HTTPClient",
    "InMemoryTableHandle",
    "InMemoryTableService",
    "ODataFilterError",
    "compile_filter",
]
