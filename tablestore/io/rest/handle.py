"""Table handle backed by the table service REST API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ...core.base import TableHandle
from ...core.enums import UpdateMode
from ...core.exceptions import ProviderError
from ...core.operations import BatchOperation, EntityWriteResult
from ...core.query import ContinuationToken, Segment, TableQuery
from .adapters import EntityAdapter, ResponseAdapter, SegmentAdapter, WriteResultAdapter
from .batch import decode_batch_response, encode_batch
from .endpoints import (
    delete_entity_spec,
    get_entity_spec,
    insert_entity_spec,
    query_entities_spec,
    update_entity_spec,
    upsert_entity_spec,
)
from .http_client import HTTPClient
from .runner import RestRunner


class AzureTableHandle(TableHandle):
    """Handle for one table; shares the service's HTTP client."""

    def __init__(self, name: str, client: HTTPClient) -> None:
        super().__init__(name)
        self._client = client
        self._runner = RestRunner(client)

    async def fetch_segment(
        self,
        query: TableQuery,
        cursor: ContinuationToken | None = None,
    ) -> Segment[dict[str, Any]]:
        return await self._run(
            query_entities_spec(),
            SegmentAdapter(),
            {"query": query, "cursor": cursor},
        )

    async def execute_batch(self, operations: Sequence[BatchOperation]) -> list[EntityWriteResult]:
        self._ensure_open()
        content_type, body = encode_batch(operations, self._client.url_for(self.name))
        response = await self._client.request(
            "POST",
            "$batch",
            headers={"Content-Type": content_type},
            data=body,
        )
        return decode_batch_response(response, operations)

    async def get_entity(self, partition_key: str, row_key: str) -> dict[str, Any]:
        return await self._run(
            get_entity_spec(),
            EntityAdapter(),
            {"partition_key": partition_key, "row_key": row_key},
        )

    async def insert_entity(self, payload: dict[str, Any]) -> EntityWriteResult:
        return await self._run(insert_entity_spec(), WriteResultAdapter(), {"payload": payload})

    async def upsert_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
    ) -> EntityWriteResult:
        return await self._run(upsert_entity_spec(mode), WriteResultAdapter(), {"payload": payload})

    async def update_entity(
        self,
        payload: dict[str, Any],
        mode: UpdateMode = UpdateMode.REPLACE,
        etag: str = "*",
    ) -> EntityWriteResult:
        return await self._run(
            update_entity_spec(mode),
            WriteResultAdapter(),
            {"payload": payload, "etag": etag},
        )

    async def delete_entity(self, partition_key: str, row_key: str, etag: str = "*") -> None:
        await self._run(
            delete_entity_spec(),
            ResponseAdapter(),
            {"partition_key": partition_key, "row_key": row_key, "etag": etag},
        )

    async def _run(self, spec, adapter: ResponseAdapter, params: dict[str, Any]) -> Any:
        self._ensure_open()
        return await self._runner.run(spec=spec, adapter=adapter, params={"table": self.name, **params})

    def _ensure_open(self) -> None:
        if self._closed:
            raise ProviderError(f"table handle {self.name!r} is closed")
