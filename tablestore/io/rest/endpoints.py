"""Table service REST endpoint specs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from ...core.enums import UpdateMode
from ...core.query import ContinuationToken, TableQuery


@dataclass(frozen=True)
class TableEndpointSpec:
    id: str
    method: str
    build_path: Callable[[dict[str, Any]], str]
    build_query: Callable[[dict[str, Any]], list[tuple[str, str]]] | None = None
    build_headers: Callable[[dict[str, Any]], dict[str, str]] | None = None
    build_body: Callable[[dict[str, Any]], Any] | None = None


def quote_key(value: str) -> str:
    """Escape a key for use inside ``PartitionKey='...'`` in a URL path."""
    return quote(value.replace("'", "''"), safe="")


def encode_query(pairs: list[tuple[str, str]]) -> str:
    return "&".join(f"{name}={quote(value, safe='')}" for name, value in pairs)


def entity_path(table: str, partition_key: str, row_key: str) -> str:
    return f"{table}(PartitionKey='{quote_key(partition_key)}',RowKey='{quote_key(row_key)}')"


def _entity_path(params: dict[str, Any]) -> str:
    payload = params.get("payload")
    if payload is not None:
        return entity_path(params["table"], payload["PartitionKey"], payload["RowKey"])
    return entity_path(params["table"], params["partition_key"], params["row_key"])


def _if_match(params: dict[str, Any]) -> dict[str, str]:
    return {"If-Match": params.get("etag") or "*"}


def _json_headers(params: dict[str, Any]) -> dict[str, str]:
    return {"Prefer": "return-no-content"}


def _write_verb(params: dict[str, Any]) -> str:
    return "MERGE" if UpdateMode(params.get("mode", UpdateMode.REPLACE)) is UpdateMode.MERGE else "PUT"


def query_entities_spec() -> TableEndpointSpec:
    def build_query(params: dict[str, Any]) -> list[tuple[str, str]]:
        query: TableQuery = params["query"]
        cursor: ContinuationToken | None = params.get("cursor")
        pairs: list[tuple[str, str]] = []
        if query.filter:
            pairs.append(("$filter", query.filter))
        if query.select:
            pairs.append(("$select", ",".join(query.select)))
        if query.page_size:
            pairs.append(("$top", str(query.page_size)))
        if cursor is not None:
            pairs.append(("NextPartitionKey", cursor.next_partition_key))
            if cursor.next_row_key is not None:
                pairs.append(("NextRowKey", cursor.next_row_key))
        return pairs

    return TableEndpointSpec(
        id="query_entities",
        method="GET",
        build_path=lambda params: f"{params['table']}()",
        build_query=build_query,
    )


def get_entity_spec() -> TableEndpointSpec:
    return TableEndpointSpec(id="get_entity", method="GET", build_path=_entity_path)


def insert_entity_spec() -> TableEndpointSpec:
    return TableEndpointSpec(
        id="insert_entity",
        method="POST",
        build_path=lambda params: params["table"],
        build_headers=_json_headers,
        build_body=lambda params: params["payload"],
    )


def upsert_entity_spec(mode: UpdateMode = UpdateMode.REPLACE) -> TableEndpointSpec:
    """Insert-or-replace (PUT) or insert-or-merge (MERGE); no If-Match."""
    return TableEndpointSpec(
        id="upsert_entity",
        method=_write_verb({"mode": mode}),
        build_path=_entity_path,
        build_body=lambda params: params["payload"],
    )


def update_entity_spec(mode: UpdateMode = UpdateMode.REPLACE) -> TableEndpointSpec:
    """Update an existing entity; If-Match makes the service reject missing rows."""
    return TableEndpointSpec(
        id="update_entity",
        method=_write_verb({"mode": mode}),
        build_path=_entity_path,
        build_headers=_if_match,
        build_body=lambda params: params["payload"],
    )


def delete_entity_spec() -> TableEndpointSpec:
    return TableEndpointSpec(
        id="delete_entity",
        method="DELETE",
        build_path=_entity_path,
        build_headers=_if_match,
    )


def create_table_spec() -> TableEndpointSpec:
    return TableEndpointSpec(
        id="create_table",
        method="POST",
        build_path=lambda _: "Tables",
        build_headers=_json_headers,
        build_body=lambda params: {"TableName": params["table"]},
    )


def delete_table_spec() -> TableEndpointSpec:
    return TableEndpointSpec(
        id="delete_table",
        method="DELETE",
        build_path=lambda params: f"Tables('{quote_key(params['table'])}')",
    )


def list_tables_spec() -> TableEndpointSpec:
    def build_query(params: dict[str, Any]) -> list[tuple[str, str]]:
        marker = params.get("next_table_name")
        return [("NextTableName", marker)] if marker else []

    return TableEndpointSpec(
        id="list_tables",
        method="GET",
        build_path=lambda _: "Tables",
        build_query=build_query,
    )
