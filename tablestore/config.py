"""Storage settings and provider limits.

This module centralizes the provider's hard limits and the connection
settings used by the REST handles, so the runtime and the transports share
one source of truth.
"""

from __future__ import annotations

import os

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .core.exceptions import ConfigurationError

# Provider hard limits
MAX_PAGE_SIZE = 1000  # rows per query request
MAX_BATCH_SIZE = 100  # operations per batch request

DEFAULT_API_VERSION = "2019-02-02"
DEFAULT_TIMEOUT = 30.0
DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"
CONNECTION_STRING_ENV = "TABLESTORE_CONNECTION_STRING"

# Well-known Azurite development account
DEV_ACCOUNT_NAME = "devstoreaccount1"
DEV_ACCOUNT_KEY = (
    "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw=="
)
DEV_TABLE_ENDPOINT = "http://127.0.0.1:10002/devstoreaccount1"


class StorageSettings(BaseModel):
    """Connection and limit settings for a table service.

    Either ``account_key`` (Shared Key Lite signing) or ``sas_token`` must be
    set for authenticated access.
    """

    account_name: str = Field(..., min_length=1)
    table_endpoint: str = Field(..., min_length=1)
    account_key: str | None = None
    sas_token: str | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    api_version: str = DEFAULT_API_VERSION
    max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    max_batch_size: int = Field(default=MAX_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("table_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("sas_token")
    @classmethod
    def _strip_query_prefix(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.lstrip("?") or None

    @model_validator(mode="after")
    def _require_credential(self) -> StorageSettings:
        if self.account_key is None and self.sas_token is None:
            raise ValueError("either account_key or sas_token is required")
        return self

    @classmethod
    def from_connection_string(cls, connection_string: str, **overrides: object) -> StorageSettings:
        """Parse an Azure-style ``Key=Value;Key=Value`` connection string.

        Args:
            connection_string: Connection string (``UseDevelopmentStorage=true``
                selects the local emulator account)
            **overrides: Extra settings (timeout, max_page_size, ...)

        Returns:
            StorageSettings instance

        Raises:
            ConfigurationError: If the string is malformed or incomplete
        """
        parts = _parse_connection_string(connection_string)

        if parts.get("usedevelopmentstorage", "").lower() == "true":
            values: dict[str, object] = {
                "account_name": DEV_ACCOUNT_NAME,
                "account_key": DEV_ACCOUNT_KEY,
                "table_endpoint": parts.get("developmentstorageproxyuri", DEV_TABLE_ENDPOINT),
            }
        else:
            account_name = parts.get("accountname")
            endpoint = parts.get("tableendpoint")
            if endpoint is None:
                if account_name is None:
                    raise ConfigurationError(
                        "connection string needs AccountName or TableEndpoint"
                    )
                protocol = parts.get("defaultendpointsprotocol", "https")
                suffix = parts.get("endpointsuffix", DEFAULT_ENDPOINT_SUFFIX)
                endpoint = f"{protocol}://{account_name}.table.{suffix}"
            if account_name is None:
                account_name = _account_from_endpoint(endpoint)
            values = {
                "account_name": account_name,
                "table_endpoint": endpoint,
                "account_key": parts.get("accountkey"),
                "sas_token": parts.get("sharedaccesssignature"),
            }

        values.update(overrides)
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid storage settings: {exc}") from exc

    @classmethod
    def from_env(cls, env_var: str = CONNECTION_STRING_ENV, **overrides: object) -> StorageSettings:
        """Build settings from a connection string held in an environment variable."""
        connection_string = os.environ.get(env_var)
        if not connection_string:
            raise ConfigurationError(f"environment variable {env_var} is not set")
        return cls.from_connection_string(connection_string, **overrides)


def _parse_connection_string(connection_string: str) -> dict[str, str]:
    parts: dict[str, str] = {}
    for segment in connection_string.strip().split(";"):
        if not segment.strip():
            continue
        name, sep, value = segment.partition("=")
        if not sep or not name.strip():
            raise ConfigurationError(f"malformed connection string segment: {segment!r}")
        parts[name.strip().lower()] = value.strip()
    if not parts:
        raise ConfigurationError("connection string is empty")
    return parts


def _account_from_endpoint(endpoint: str) -> str:
    host = endpoint.split("://", 1)[-1].split("/", 1)[0]
    account = host.split(".", 1)[0]
    if not account:
        raise ConfigurationError(f"cannot derive account name from endpoint {endpoint!r}")
    return account
