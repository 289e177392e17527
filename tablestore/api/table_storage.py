"""Repository-style facade over partitioned tables.

TableStorage offers per-table CRUD, full reads, bounded queries and bulk
inserts of any size, hiding the provider's page and batch limits.

Architecture:
    This module is a facade over the runtime:
    - TableRegistry: resolves (and creates on first use) one handle per table
    - SegmentScanner: drains cursor-paged reads, full or count-bounded
    - BatchDispatcher: splits bulk writes into provider-legal batches and
      dispatches them concurrently

Design Decisions:
    - Accepts either StorageSettings (builds the REST service) or any
      TableHandleFactory, so tests run against the in-memory service
    - Rows are converted to ``entity_type`` at this layer only; the runtime
      and handles move plain dicts
    - Registry injection allows sharing handles between facades

See Also:
    - TableRegistry, SegmentScanner, BatchDispatcher
    - AzureTableService, InMemoryTableService: handle factories
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any, TypeVar

from ..config import StorageSettings
from ..core.base import TableHandle, TableHandleFactory
from ..core.enums import BatchInsertMethod, UpdateMode
from ..core.exceptions import EntityNotFoundError, TableStoreError
from ..core.operations import EntityWriteResult, as_entity
from ..core.query import TableQuery
from ..io.rest import AzureTableService
from ..models import TableEntity
from ..runtime.paging import BatchDispatcher, BatchPolicy, PagePolicy, SegmentScanner
from ..runtime.table_registry import TableRegistry

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=TableEntity)


class TableStorage:
    """High-level access to the tables of one storage account.

    Example:
        >>> async with TableStorage(StorageSettings.from_env()) as storage:
        ...     await storage.insert_batch("orders", orders)
        ...     recent = await storage.query(
        ...         "orders", TableQuery(filter="PartitionKey eq 'eu'", take=50), Order
        ...     )
    """

    def __init__(
        self,
        source: StorageSettings | TableHandleFactory,
        *,
        registry: TableRegistry | None = None,
        page_policy: PagePolicy | None = None,
        batch_policy: BatchPolicy | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            source: Storage settings, or a ready handle factory
            registry: Shared registry (a private one is created if omitted)
            page_policy: Page size limit for reads
            batch_policy: Batch size limit and concurrency cap for bulk writes
        """
        if isinstance(source, StorageSettings):
            self._service: Any = AzureTableService(source)
            page_policy = page_policy or PagePolicy(max_page_size=source.max_page_size)
            batch_policy = batch_policy or BatchPolicy(max_batch_size=source.max_batch_size)
            self._owns_service = True
        else:
            self._service = source
            self._owns_service = False

        self._owns_registry = registry is None
        self._registry = registry or TableRegistry(self._service)
        self._page_policy = page_policy or PagePolicy()
        self._batch_policy = batch_policy or BatchPolicy()
        self._closed = False

    @property
    def registry(self) -> TableRegistry:
        return self._registry

    async def table(self, table_name: str) -> TableHandle:
        """Resolve the handle for a table, creating the table if needed."""
        if self._closed:
            raise TableStoreError("TableStorage is closed")
        return await self._registry.resolve(table_name)

    # Reads

    async def get(
        self,
        table_name: str,
        partition_key: str,
        row_key: str,
        entity_type: type[EntityT] = TableEntity,
    ) -> EntityT | None:
        """Fetch one entity by key; None if it does not exist."""
        handle = await self.table(table_name)
        try:
            row = await handle.get_entity(partition_key, row_key)
        except EntityNotFoundError:
            return None
        return entity_type.from_storage(row)

    async def get_all(
        self,
        table_name: str,
        entity_type: type[EntityT] = TableEntity,
    ) -> list[EntityT]:
        """Read every entity in the table."""
        return await self.query(table_name, TableQuery(), entity_type)

    async def query(
        self,
        table_name: str,
        query: TableQuery,
        entity_type: type[EntityT] = TableEntity,
    ) -> list[EntityT]:
        """Run a query to completion.

        When ``query.take`` is set, exactly ``min(take, matches)`` entities
        are returned; otherwise every match is.
        """
        handle = await self.table(table_name)
        result = await self._scanner(table_name).execute(handle, query)
        return [entity_type.from_storage(row) for row in result.entities]

    async def iter_query(
        self,
        table_name: str,
        query: TableQuery | None = None,
        entity_type: type[EntityT] = TableEntity,
    ) -> AsyncIterator[EntityT]:
        """Lazily yield every match, one page fetched at a time."""
        handle = await self.table(table_name)
        async for row in self._scanner(table_name).iter_entities(handle, query or TableQuery()):
            yield entity_type.from_storage(row)

    # Single-entity writes

    async def add(self, table_name: str, entity: TableEntity | Mapping[str, Any]) -> EntityWriteResult:
        """Insert; raises EntityConflictError if the key exists."""
        handle = await self.table(table_name)
        return await handle.insert_entity(as_entity(entity).to_payload())

    async def update(
        self,
        table_name: str,
        entity: TableEntity | Mapping[str, Any],
        *,
        mode: UpdateMode = UpdateMode.REPLACE,
    ) -> EntityWriteResult:
        """Update an existing entity, honoring its etag when it carries one."""
        model = as_entity(entity)
        handle = await self.table(table_name)
        return await handle.update_entity(model.to_payload(), mode, model.etag or "*")

    async def add_or_update(self, table_name: str, entity: TableEntity | Mapping[str, Any]) -> EntityWriteResult:
        """Insert or replace."""
        handle = await self.table(table_name)
        return await handle.upsert_entity(as_entity(entity).to_payload(), UpdateMode.REPLACE)

    async def add_or_merge(self, table_name: str, entity: TableEntity | Mapping[str, Any]) -> EntityWriteResult:
        """Insert or merge into the existing properties."""
        handle = await self.table(table_name)
        return await handle.upsert_entity(as_entity(entity).to_payload(), UpdateMode.MERGE)

    async def delete(self, table_name: str, entity: TableEntity | Mapping[str, Any]) -> None:
        """Delete an entity, honoring its etag when it carries one."""
        model = as_entity(entity)
        handle = await self.table(table_name)
        await handle.delete_entity(model.partition_key, model.row_key, model.etag or "*")

    # Bulk writes

    async def insert_batch(
        self,
        table_name: str,
        entities: Iterable[TableEntity | Mapping[str, Any]],
        method: BatchInsertMethod | str = BatchInsertMethod.INSERT,
    ) -> list[EntityWriteResult]:
        """Write any number of entities as concurrent provider batches.

        Results come back in input order.

        Raises:
            BatchDispatchError: If any batch failed; batches that succeeded
                stay written and are listed in ``committed``
        """
        handle = await self.table(table_name)
        dispatcher = BatchDispatcher(self._batch_policy, table=table_name)
        result = await dispatcher.dispatch(handle, entities, method)
        return result.results

    # Lifecycle

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_registry:
            await self._registry.close_all()
        if self._owns_service:
            await self._service.close()

    async def __aenter__(self) -> TableStorage:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _scanner(self, table_name: str) -> SegmentScanner:
        return SegmentScanner(self._page_policy, table=table_name)
