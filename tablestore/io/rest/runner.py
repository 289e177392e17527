"""REST request runner using endpoint specs and response adapters."""

from __future__ import annotations

from typing import Any

from .adapters import ResponseAdapter
from .endpoints import TableEndpointSpec, encode_query
from .http_client import HTTPClient


class RestRunner:
    def __init__(self, client: HTTPClient) -> None:
        self._client = client

    async def run(
        self,
        *,
        spec: TableEndpointSpec,
        adapter: ResponseAdapter,
        params: dict[str, Any],
    ) -> Any:
        path = spec.build_path(params)
        query = encode_query(spec.build_query(params)) if spec.build_query else ""
        headers = spec.build_headers(params) if spec.build_headers else None
        body = spec.build_body(params) if spec.build_body else None

        response = await self._client.request(
            spec.method,
            path,
            query=query,
            headers=headers,
            json_body=body,
        )
        return adapter.parse(response, params)
