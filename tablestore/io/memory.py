"""In-memory table handle.

A process-local stand-in for the remote table store that enforces the same
limits and semantics the paging runtime relies on: rows iterate in
(PartitionKey, RowKey) order, pages are capped and resumed through
continuation tokens, batches are capped, single-partition and atomic, and
inserts conflict on existing keys.
"""

from __future__ import annotations

import itertools
from bisect import bisect_left
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import Any

from ..config import MAX_BATCH_SIZE, MAX_PAGE_SIZE
from ..core.base import TableHandle
from ..core.enums import UpdateMode
from ..core.exceptions import (
    EntityConflictError,
    EntityNotFoundError,
    PreconditionFailedError,
    ProviderError,
)
from ..core.operations import BatchOperation, EntityWriteResult
from ..core.query import ContinuationToken, Segment, TableQuery
from .odata import ODataFilterError, compile_filter

_KEY_FIELDS = ("PartitionKey", "RowKey")


class InMemoryTableHandle(TableHandle):
    """Table handle backed by a dict of rows."""

    def __init__(
        self,
        name: str,
        *,
        max_page_size: int = MAX_PAGE_SIZE,
        max_batch_size: int = MAX_BATCH_SIZE,
        page_sizes: Sequence[int] | None = None,
        rows: dict[tuple[str, str], dict[str, Any]] | None = None,
        etags: Iterator[int] | None = None,
    ) -> None:
        """Initialize in-memory handle.

        Args:
            name: Table name
            max_page_size: Hard cap on rows per fetch
            max_batch_size: Hard cap on operations per batch
            page_sizes: Provider-chosen page sizes, cycled per fetch; lets
                tests force pages shorter than requested
            rows: Shared row storage (used when reopening a table)
            etags: Etag sequence shared with ``rows``
        """
        super().__init__(name)
        self._max_page_size = max_page_size
        self._max_batch_size = max_batch_size
        self._page_sizes = itertools.cycle(page_sizes) if page_sizes else None
        self._etags = etags if etags is not None else itertools.count(1)
        self._rows: dict[tuple[str, str], dict[str, Any]] = rows if rows is not None else {}

    def __len__(self) -> int:
        return len(self._rows)

    async def fetch_segment(
        self,
        query: TableQuery,
        cursor: ContinuationToken | None = None,
    ) -> Segment[dict[str, Any]]:
        self._ensure_open()
        try:
            predicate = compile_filter(query.filter)
        except ODataFilterError as exc:
            raise ProviderError(str(exc), status_code=400, error_code="InvalidInput") from exc

        limit = min(query.page_size or self._max_page_size, self._max_page_size)
        if self._page_sizes is not None:
            limit = min(limit, next(self._page_sizes))

        keys = sorted(self._rows)
        start = 0
        if cursor is not None:
            start = bisect_left(keys, (cursor.next_partition_key, cursor.next_row_key or ""))

        entities: list[dict[str, Any]] = []
        continuation: ContinuationToken | None = None
        for key in keys[start:]:
            row = self._rows[key]
            if not predicate(row):
                continue
            if len(entities) == limit:
                continuation = ContinuationToken(next_partition_key=key[0], next_row_key=key[1])
                break
            entities.append(self._project(row, query.select))

        return Segment(entities=entities, continuation=continuation)

    async def execute_batch(self, operations: Sequence[BatchOperation]) -> list[EntityWriteResult]:
        self._ensure_open()
        if not operations:
            raise ProviderError("batch is empty", status_code=400, error_code="InvalidInput")
        if len(operations) > self._max_batch_size:
            raise ProviderError(
                f"batch has {len(operations)} operations, limit is {self._max_batch_size}",
                status_code=400,
                error_code="InvalidInput",
            )
        if len({op.partition_key for op in operations}) > 1:
            raise ProviderError(
                "all operations in a batch must share a partition key",
                status_code=400,
                error_code="CommandsInBatchActOnDifferentPartitions",
            )
        if len({op.key for op in operations}) != len(operations):
            raise ProviderError(
                "batch contains the same entity more than once",
                status_code=400,
                error_code="InvalidDuplicateRow",
            )

        # Apply to a copy so the batch commits all-or-nothing
        staged = dict(self._rows)
        results: list[EntityWriteResult] = []
        for index, op in enumerate(operations):
            if op.verb == "POST":
                if op.key in staged:
                    raise EntityConflictError(f"{index}:The specified entity already exists.")
                row = self._stamp(op.payload)
            elif op.verb == "PUT":
                row = self._stamp(op.payload)
            elif op.verb == "MERGE":
                row = self._stamp({**staged.get(op.key, {}), **op.payload})
            else:
                raise ProviderError(f"unsupported batch verb {op.verb!r}", status_code=400)
            staged[op.key] = row
            results.append(self._result(row))

        self._rows.clear()
        self._rows.update(staged)
        return results

    async def get_entity(self, partition_key: str, row_key: str) -> dict[str, Any]:
        self._ensure_open()
        row = self._rows.get((partition_key, row_key))
        if row is None:
            raise EntityNotFoundError(f"entity ({partition_key!r}, {row_key!r}) not found")
        return dict(row)

    async def insert_entity(self, payload: dict[str, Any]) -> EntityWriteResult:
        self._ensure_open()
        key = self._key(payload)
        if key in self._rows:
            raise EntityConflictError("The specified entity already exists.")
        row = self._stamp(payload)
        self._rows[key] = row
        return self._result(row, status_code=201)

    async def upsert_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
    ) -> EntityWriteResult:
        self._ensure_open()
        key = self._key(payload)
        if UpdateMode(mode) is UpdateMode.MERGE:
            payload = {**self._rows.get(key, {}), **payload}
        row = self._stamp(payload)
        self._rows[key] = row
        return self._result(row)

    async def update_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
        etag: str = "*",
    ) -> EntityWriteResult:
        self._ensure_open()
        key = self._key(payload)
        current = self._check_etag(key, etag)
        if UpdateMode(mode) is UpdateMode.MERGE:
            payload = {**current, **payload}
        row = self._stamp(payload)
        self._rows[key] = row
        return self._result(row)

    async def delete_entity(self, partition_key: str, row_key: str, etag: str = "*") -> None:
        self._ensure_open()
        key = (partition_key, row_key)
        self._check_etag(key, etag)
        del self._rows[key]

    def _ensure_open(self) -> None:
        if self._closed:
            raise ProviderError(f"table handle {self.name!r} is closed")

    def _check_etag(self, key: tuple[str, str], etag: str) -> dict[str, Any]:
        current = self._rows.get(key)
        if current is None:
            raise EntityNotFoundError(f"entity {key!r} not found")
        if etag != "*" and current.get("odata.etag") != etag:
            raise PreconditionFailedError("The update condition specified in the request was not satisfied.")
        return current

    @staticmethod
    def _key(payload: dict[str, Any]) -> tuple[str, str]:
        missing = [name for name in _KEY_FIELDS if name not in payload]
        if missing:
            raise ProviderError(
                f"entity is missing {', '.join(missing)}",
                status_code=400,
                error_code="PropertiesNeedValue",
            )
        return (payload["PartitionKey"], payload["RowKey"])

    def _stamp(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._key(payload)
        now = datetime.now(UTC)
        row = {
            name: value
            for name, value in payload.items()
            if name not in ("Timestamp", "odata.etag")
        }
        row["Timestamp"] = now.isoformat().replace("+00:00", "Z")
        row["odata.etag"] = f'W/"datetime\'{next(self._etags)}\'"'
        return row

    @staticmethod
    def _project(row: dict[str, Any], select: list[str] | None) -> dict[str, Any]:
        if select is None:
            return dict(row)
        wanted = set(select) | set(_KEY_FIELDS) | {"Timestamp", "odata.etag"}
        return {name: value for name, value in row.items() if name in wanted}

    @staticmethod
    def _result(row: dict[str, Any], status_code: int = 204) -> EntityWriteResult:
        return EntityWriteResult(
            partition_key=row["PartitionKey"],
            row_key=row["RowKey"],
            status_code=status_code,
            etag=row["odata.etag"],
        )


class InMemoryTableService:
    """Handle factory for in-memory tables; one row store per table name."""

    def __init__(
        self,
        *,
        max_page_size: int = MAX_PAGE_SIZE,
        max_batch_size: int = MAX_BATCH_SIZE,
    ) -> None:
        self._max_page_size = max_page_size
        self._max_batch_size = max_batch_size
        self._storage: dict[str, dict[tuple[str, str], dict[str, Any]]] = {}
        self._etags: dict[str, Iterator[int]] = {}
        self.tables_created = 0

    async def open_table(self, table_name: str) -> InMemoryTableHandle:
        """Open a handle, creating the table's storage on first use."""
        if table_name not in self._storage:
            self._storage[table_name] = {}
            self._etags[table_name] = itertools.count(1)
            self.tables_created += 1
        return InMemoryTableHandle(
            table_name,
            max_page_size=self._max_page_size,
            max_batch_size=self._max_batch_size,
            rows=self._storage[table_name],
            etags=self._etags[table_name],
        )

    def list_tables(self) -> list[str]:
        return sorted(self._storage)
