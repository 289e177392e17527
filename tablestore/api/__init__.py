"""High-level facade."""

from .table_storage import TableStorage

__all__ = ["TableStorage"]
