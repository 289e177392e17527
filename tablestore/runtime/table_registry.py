"""Table registry for resolving table names to handles.

The TableRegistry memoizes one TableHandle per table name, opening (and
creating, if needed) the backing table on first resolution.

Architecture:
    - Handle pooling: one handle per table name, shared across callers
    - Per-name async locks: concurrent first resolutions of the same name
      call the factory exactly once
    - Double-checked lookup: the fast path never takes a lock
    - Closed handles are dropped and reopened on next resolution

See Also:
    - TableHandleFactory: Creates handles (REST service, in-memory service)
    - TableStorage: Facade that resolves tables through a registry
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from ..core.base import TableHandle, TableHandleFactory
from ..core.exceptions import TableStoreError

logger = logging.getLogger(__name__)


class TableRegistry:
    """Concurrency-safe memoized resolver of table handles."""

    def __init__(self, factory: TableHandleFactory) -> None:
        """Initialize the registry.

        Args:
            factory: Opens the backing table for a name (creating it if absent)
        """
        self._factory = factory
        self._handles: dict[str, TableHandle] = {}
        # One lock per table name; creation is safe without a guard because
        # nothing awaits between the lookup and the insert.
        self._locks: dict[str, asyncio.Lock] = {}
        self._closed = False

    async def resolve(self, table_name: str) -> TableHandle:
        """Get or open the handle for a table.

        Args:
            table_name: Logical table name

        Returns:
            Open TableHandle, the same instance for repeated calls

        Raises:
            TableStoreError: If the registry is closed, including while the
                table was being opened
        """
        if self._closed:
            raise TableStoreError("Table registry is closed")

        handle = self._handles.get(table_name)
        if handle is not None and not handle.closed:
            return handle

        lock = self._locks.setdefault(table_name, asyncio.Lock())
        async with lock:
            # Another caller may have opened it while we waited
            handle = self._handles.get(table_name)
            if handle is not None and not handle.closed:
                return handle

            handle = await self._factory.open_table(table_name)
            if self._closed:
                # close_all ran while the table was opening
                await handle.close()
                raise TableStoreError("Table registry is closed")

            self._handles[table_name] = handle
            logger.debug("table_resolved", extra={"table": table_name})
            return handle

    def is_resolved(self, table_name: str) -> bool:
        handle = self._handles.get(table_name)
        return handle is not None and not handle.closed

    def list_tables(self) -> list[str]:
        """List table names with a live handle."""
        return [name for name in self._handles if self.is_resolved(name)]

    async def invalidate(self, table_name: str) -> None:
        """Close and forget the handle for a table, if any."""
        handle = self._handles.pop(table_name, None)
        if handle is not None:
            await handle.close()

    async def close_all(self) -> None:
        """Close all handles and refuse further resolutions."""
        if self._closed:
            return

        self._closed = True
        handles = list(self._handles.values())
        self._handles.clear()
        self._locks.clear()

        for handle in handles:
            with suppress(Exception):
                await handle.close()

    async def __aenter__(self) -> TableRegistry:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()
