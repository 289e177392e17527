"""Response adapters for table service REST responses."""

from __future__ import annotations

from typing import Any

from ...core.operations import EntityWriteResult
from ...core.query import ContinuationToken, Segment
from .http_client import HTTPResponse


class ResponseAdapter:
    def parse(self, response: HTTPResponse, params: dict[str, Any]) -> Any:
        return response


class SegmentAdapter(ResponseAdapter):
    """Rows plus the continuation headers of one query page."""

    def parse(self, response: HTTPResponse, params: dict[str, Any]) -> Segment[dict[str, Any]]:
        rows = response.json().get("value", [])
        next_pk = response.headers.get("x-ms-continuation-nextpartitionkey")
        next_rk = response.headers.get("x-ms-continuation-nextrowkey")
        continuation = None
        if next_pk is not None:
            continuation = ContinuationToken(next_partition_key=next_pk, next_row_key=next_rk)
        return Segment(entities=list(rows), continuation=continuation)


class EntityAdapter(ResponseAdapter):
    def parse(self, response: HTTPResponse, params: dict[str, Any]) -> dict[str, Any]:
        row = dict(response.json())
        etag = response.headers.get("etag")
        if etag and "odata.etag" not in row:
            row["odata.etag"] = etag
        return row


class WriteResultAdapter(ResponseAdapter):
    def parse(self, response: HTTPResponse, params: dict[str, Any]) -> EntityWriteResult:
        payload = params["payload"]
        return EntityWriteResult(
            partition_key=payload["PartitionKey"],
            row_key=payload["RowKey"],
            status_code=response.status,
            etag=response.headers.get("etag"),
        )


class TableNamesAdapter(ResponseAdapter):
    """Table names of one listing page plus the next-table marker."""

    def parse(self, response: HTTPResponse, params: dict[str, Any]) -> tuple[list[str], str | None]:
        names = [row["TableName"] for row in response.json().get("value", [])]
        return names, response.headers.get("x-ms-continuation-nexttablename")
