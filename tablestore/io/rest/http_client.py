"""Async HTTP client for the table service REST API."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp
from yarl import URL

from ...config import DEFAULT_API_VERSION, DEFAULT_TIMEOUT
from ...core.exceptions import ProviderError
from .errors import raise_for_status

if TYPE_CHECKING:
    from .auth import Credential

JSON_MINIMAL_METADATA = "application/json;odata=minimalmetadata"


@dataclass(frozen=True)
class HTTPResponse:
    """Fully-read response; header names are lower-cased."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        if not self.body:
            return {}
        return json.loads(self.body)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class HTTPClient:
    """Async HTTP client wrapper that signs every request."""

    def __init__(
        self,
        base_url: str,
        *,
        credential: Credential | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str = DEFAULT_API_VERSION,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._credential = credential
        self._api_version = api_version
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: str = "",
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
        json_body: Any = None,
    ) -> HTTPResponse:
        """Send a request and return the fully-read response.

        Args:
            method: HTTP verb (GET, POST, PUT, MERGE, DELETE)
            path: Path relative to the service endpoint, already percent-encoded
            query: Encoded query string without the leading ``?``
            headers: Extra headers (override the defaults)
            data: Raw request body
            json_body: Body to serialize as JSON (takes precedence over data)

        Returns:
            HTTPResponse for any status below 400

        Raises:
            ProviderError: On transport failures and error statuses
        """
        url = self.url_for(path)
        if query:
            url = f"{url}?{query}"

        request_headers = {
            "x-ms-version": self._api_version,
            "DataServiceVersion": "3.0;NetFx",
            "MaxDataServiceVersion": "3.0;NetFx",
            "Accept": JSON_MINIMAL_METADATA,
        }
        if json_body is not None:
            data = json.dumps(json_body).encode("utf-8")
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        if self._credential is not None:
            url = self._credential.sign(method, url, request_headers)

        try:
            async with self.session.request(
                method,
                URL(url, encoded=True),
                headers=request_headers,
                data=data,
            ) as response:
                result = HTTPResponse(
                    status=response.status,
                    headers={name.lower(): value for name, value in response.headers.items()},
                    body=await response.read(),
                )
        except asyncio.TimeoutError as exc:
            raise ProviderError(f"{method} {path} timed out") from exc
        except aiohttp.ClientError as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        raise_for_status(result)
        return result

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
