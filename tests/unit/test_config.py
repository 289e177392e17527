"""Unit tests for storage settings."""

from __future__ import annotations

import pytest

from tablestore.config import (
    CONNECTION_STRING_ENV,
    DEV_ACCOUNT_KEY,
    DEV_TABLE_ENDPOINT,
    StorageSettings,
)
from tablestore.core import ConfigurationError


class TestConnectionString:
    """Test StorageSettings.from_connection_string."""

    def test_account_key(self):
        settings = StorageSettings.from_connection_string(
            f"DefaultEndpointsProtocol=https;AccountName=acct;AccountKey={DEV_ACCOUNT_KEY};EndpointSuffix=core.windows.net"
        )

        assert settings.account_name == "acct"
        assert settings.table_endpoint == "https://acct.table.core.windows.net"
        assert settings.account_key == DEV_ACCOUNT_KEY

    def test_development_storage(self):
        settings = StorageSettings.from_connection_string("UseDevelopmentStorage=true")

        assert settings.account_name == "devstoreaccount1"
        assert settings.table_endpoint == DEV_TABLE_ENDPOINT

    def test_table_endpoint_and_sas(self):
        """Test the account is derived from the endpoint host."""
        settings = StorageSettings.from_connection_string(
            "TableEndpoint=https://acct.table.core.windows.net/;SharedAccessSignature=?sv=2019-02-02&sig=x"
        )

        assert settings.account_name == "acct"
        assert settings.table_endpoint == "https://acct.table.core.windows.net"
        assert settings.sas_token == "sv=2019-02-02&sig=x"

    def test_overrides(self):
        settings = StorageSettings.from_connection_string(
            "UseDevelopmentStorage=true", timeout=5.0, max_page_size=100
        )
        assert settings.timeout == 5.0
        assert settings.max_page_size == 100

    @pytest.mark.parametrize(
        "connection_string",
        [
            "",
            "AccountName",
            "AccountName=acct",
            "DefaultEndpointsProtocol=https",
        ],
    )
    def test_invalid(self, connection_string):
        with pytest.raises(ConfigurationError):
            StorageSettings.from_connection_string(connection_string)

    def test_limits_are_enforced(self):
        """Test limits above the provider's are rejected."""
        with pytest.raises(ConfigurationError):
            StorageSettings.from_connection_string("UseDevelopmentStorage=true", max_batch_size=101)


class TestFromEnv:
    """Test StorageSettings.from_env."""

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv(CONNECTION_STRING_ENV, "UseDevelopmentStorage=true")
        assert StorageSettings.from_env().account_name == "devstoreaccount1"

    def test_missing_env(self, monkeypatch):
        monkeypatch.delenv(CONNECTION_STRING_ENV, raising=False)
        with pytest.raises(ConfigurationError, match=CONNECTION_STRING_ENV):
            StorageSettings.from_env()
