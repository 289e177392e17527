"""Shared fixtures for integration tests."""

import os

import pytest

# Skip all integration tests unless RUN_TABLESTORE_NETWORK_TESTS=1
pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_TABLESTORE_NETWORK_TESTS") != "1",
    reason="Requires a table service. Set RUN_TABLESTORE_NETWORK_TESTS=1 to run",
)
