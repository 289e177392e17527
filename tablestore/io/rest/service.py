"""Table service client: table lifecycle and handle factory."""

from __future__ import annotations

import logging
import re

from ...config import StorageSettings
from ...core.exceptions import EntityConflictError, EntityNotFoundError, ValidationError
from .adapters import ResponseAdapter, TableNamesAdapter
from .auth import credential_from_settings
from .endpoints import create_table_spec, delete_table_spec, list_tables_spec
from .handle import AzureTableHandle
from .http_client import HTTPClient
from .runner import RestRunner

logger = logging.getLogger(__name__)

TABLE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]{2,62}$")


def validate_table_name(table_name: str) -> str:
    if not TABLE_NAME_RE.match(table_name):
        raise ValidationError(
            f"invalid table name {table_name!r}: 3-63 alphanumeric characters, starting with a letter"
        )
    return table_name


class AzureTableService:
    """Opens table handles against one storage account.

    Tables are created on first open; handles share this service's HTTP
    client, so closing the service closes the session for every handle.
    """

    def __init__(self, settings: StorageSettings, *, client: HTTPClient | None = None) -> None:
        self.settings = settings
        self._client = client or HTTPClient(
            settings.table_endpoint,
            credential=credential_from_settings(settings),
            timeout=settings.timeout,
            api_version=settings.api_version,
        )
        self._runner = RestRunner(self._client)

    @classmethod
    def from_connection_string(cls, connection_string: str, **overrides: object) -> AzureTableService:
        return cls(StorageSettings.from_connection_string(connection_string, **overrides))

    async def create_table(self, table_name: str) -> bool:
        """Create a table; returns False if it already existed."""
        validate_table_name(table_name)
        try:
            await self._runner.run(
                spec=create_table_spec(),
                adapter=ResponseAdapter(),
                params={"table": table_name},
            )
        except EntityConflictError:
            return False
        logger.info("table_created", extra={"table": table_name})
        return True

    async def delete_table(self, table_name: str) -> bool:
        """Delete a table; returns False if it did not exist."""
        validate_table_name(table_name)
        try:
            await self._runner.run(
                spec=delete_table_spec(),
                adapter=ResponseAdapter(),
                params={"table": table_name},
            )
        except EntityNotFoundError:
            return False
        logger.info("table_deleted", extra={"table": table_name})
        return True

    async def list_tables(self) -> list[str]:
        names: list[str] = []
        marker: str | None = None
        while True:
            page, marker = await self._runner.run(
                spec=list_tables_spec(),
                adapter=TableNamesAdapter(),
                params={"next_table_name": marker},
            )
            names.extend(page)
            if marker is None:
                return names

    async def open_table(self, table_name: str) -> AzureTableHandle:
        """Ensure the table exists and return a handle for it."""
        await self.create_table(table_name)
        return AzureTableHandle(table_name, self._client)

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> AzureTableService:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
