"""Data models for table rows.

Architecture:
    Pydantic v2 models, frozen so that the paging and batching runtime can
    hand entities around without ever mutating caller-owned objects.
"""

from .entity import TableEntity

__all__ = [
    "TableEntity",
]
