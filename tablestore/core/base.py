"""Table handle interfaces.

Architecture:
    The paging runtime only needs two capabilities from a table:
    - SegmentSource: one bounded, cursor-driven page fetch
    - BatchWriter: one bounded batch write
    TableHandle bundles both with the single-entity pass-through operations
    and is what a TableRegistry hands out. Concrete handles live in
    ``tablestore.io`` (REST over aiohttp, in-memory).

Design Decisions:
    - Protocols for the runtime seams: scanner/dispatcher accept any object
      with the right coroutine, which keeps test doubles trivial
    - Abstract base class for full handles: enforces the complete surface
    - Async context manager: handles own network sessions

See Also:
    - SegmentScanner: consumes SegmentSource
    - BatchDispatcher: consumes BatchWriter
    - TableRegistry: resolves table names to handles
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from .enums import UpdateMode
from .operations import BatchOperation, EntityWriteResult
from .query import ContinuationToken, Segment, TableQuery


@runtime_checkable
class SegmentSource(Protocol):
    """Cursor-paged fetch primitive of the remote store."""

    async def fetch_segment(
        self,
        query: TableQuery,
        cursor: ContinuationToken | None = None,
    ) -> Segment[Any]:
        """Fetch one page; ``cursor=None`` starts a new scan."""
        ...


@runtime_checkable
class BatchWriter(Protocol):
    """Bounded batch-write primitive of the remote store."""

    async def execute_batch(
        self,
        operations: Sequence[BatchOperation],
    ) -> list[EntityWriteResult]:
        """Execute one batch; returns one result per operation, in order."""
        ...


class TableHandle(ABC):
    """Usable capability for a single table.

    Rows travel as plain dicts at this level; typed conversion is done by the
    caller (see ``TableStorage``).
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def fetch_segment(
        self,
        query: TableQuery,
        cursor: ContinuationToken | None = None,
    ) -> Segment[dict[str, Any]]:
        """Fetch one page of rows matching ``query``."""
        pass

    @abstractmethod
    async def execute_batch(
        self,
        operations: Sequence[BatchOperation],
    ) -> list[EntityWriteResult]:
        """Execute one provider batch."""
        pass

    @abstractmethod
    async def get_entity(self, partition_key: str, row_key: str) -> dict[str, Any]:
        """Fetch one row by key."""
        pass

    @abstractmethod
    async def insert_entity(self, payload: dict[str, Any]) -> EntityWriteResult:
        """Insert; fails with a conflict if the key exists."""
        pass

    @abstractmethod
    async def upsert_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
    ) -> EntityWriteResult:
        """Insert or replace/merge regardless of existing state."""
        pass

    @abstractmethod
    async def update_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
        etag: str = "*",
    ) -> EntityWriteResult:
        """Replace/merge an existing row; fails if missing or etag mismatches."""
        pass

    @abstractmethod
    async def delete_entity(self, partition_key: str, row_key: str, etag: str = "*") -> None:
        """Delete an existing row."""
        pass

    async def close(self) -> None:
        """Release resources held by the handle."""
        self._closed = True

    async def __aenter__(self) -> TableHandle:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class TableHandleFactory(Protocol):
    """Opens (creating if needed) the backing table for a name."""

    async def open_table(self, table_name: str) -> TableHandle: ...
