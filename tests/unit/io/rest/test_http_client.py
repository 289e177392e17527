"""Unit tests for HTTPClient.

Tests focus on session management, request construction and error mapping.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from tablestore.core import EntityNotFoundError, ProviderError
from tablestore.io.rest import HTTPClient, SasCredential


def mock_session(status: int = 200, headers: dict | None = None, body: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.read = AsyncMock(return_value=body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.request = MagicMock(return_value=context)
    return session


class TestHTTPClientSessionManagement:
    """Test HTTPClient session management."""

    def test_init(self):
        """Test HTTPClient initialization."""
        client = HTTPClient("https://acct.table.core.windows.net/", timeout=10.0)
        assert client.base_url == "https://acct.table.core.windows.net"
        assert client.timeout.total == 10.0
        assert client._session is None

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self):
        """Test session property creates session when needed."""
        client = HTTPClient("https://h")
        session = client.session

        assert isinstance(session, aiohttp.ClientSession)
        assert client.session is session
        await client.close()

    @pytest.mark.asyncio
    async def test_close_closes_session(self):
        """Test close() closes session."""
        async with HTTPClient("https://h") as client:
            session = client.session
        assert session.closed

    def test_url_for(self):
        client = HTTPClient("https://h/devstoreaccount1")
        assert client.url_for("/Tables") == "https://h/devstoreaccount1/Tables"


class TestHTTPClientRequest:
    """Test HTTPClient.request."""

    @pytest.mark.asyncio
    async def test_request_builds_url_headers_and_body(self):
        """Test default headers, JSON body and signed URL."""
        client = HTTPClient("https://h", credential=SasCredential("sig=abc"))
        client._session = mock_session(204, {"ETag": 'W/"1"'})

        response = await client.request("POST", "orders", query="$top=1", json_body={"a": 1})

        method, url = client._session.request.call_args.args
        kwargs = client._session.request.call_args.kwargs
        assert method == "POST"
        assert str(url) == "https://h/orders?$top=1&sig=abc"
        assert kwargs["headers"]["x-ms-version"] == "2019-02-02"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["data"] == b'{"a": 1}'
        assert response.status == 204
        assert response.headers == {"etag": 'W/"1"'}

    @pytest.mark.asyncio
    async def test_error_status_is_raised(self):
        """Test error statuses map onto the exception hierarchy."""
        client = HTTPClient("https://h")
        client._session = mock_session(404, body=b"")

        with pytest.raises(EntityNotFoundError):
            await client.request("GET", "orders(PartitionKey='p',RowKey='r')")

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self):
        """Test aiohttp errors become ProviderError with the cause kept."""
        client = HTTPClient("https://h")
        client._session = mock_session()
        client._session.request.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(ProviderError) as exc_info:
            await client.request("GET", "Tables")

        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self):
        """Test timeouts become ProviderError."""
        client = HTTPClient("https://h")
        client._session = mock_session()
        client._session.request.side_effect = asyncio.TimeoutError()

        with pytest.raises(ProviderError, match="timed out"):
            await client.request("GET", "Tables")
