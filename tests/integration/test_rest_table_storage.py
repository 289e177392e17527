"""Integration tests against a live table service (Azurite by default)."""

import os
import uuid

import pytest

from tablestore import (
    BatchDispatchError,
    BatchInsertMethod,
    EntityConflictError,
    StorageSettings,
    TableEntity,
    TableQuery,
    TableStorage,
)

pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_TABLESTORE_NETWORK_TESTS") != "1",
    reason="Requires a table service to test the REST handle",
)


def settings() -> StorageSettings:
    if os.environ.get("TABLESTORE_CONNECTION_STRING"):
        return StorageSettings.from_env()
    return StorageSettings.from_connection_string("UseDevelopmentStorage=true")


def table_name() -> str:
    return f"it{uuid.uuid4().hex[:12]}"


def rows(count: int, partition: str = "p") -> list[TableEntity]:
    return [TableEntity(PartitionKey=partition, RowKey=f"{i:05d}", n=i) for i in range(count)]


class TestRESTTableStorageIntegration:
    """Round trips through the REST handle."""

    @pytest.mark.asyncio
    async def test_bulk_insert_and_bounded_query(self):
        name = table_name()
        async with TableStorage(settings()) as storage:
            results = await storage.insert_batch(name, rows(1500))
            everything = await storage.get_all(name)
            first = await storage.query(name, TableQuery(take=1200))

            assert len(results) == 1500
            assert len(everything) == 1500
            assert len(first) == 1200
            assert [e.row_key for e in first] == [f"{i:05d}" for i in range(1200)]

    @pytest.mark.asyncio
    async def test_insert_conflict_vs_replace(self):
        name = table_name()
        async with TableStorage(settings()) as storage:
            await storage.add(name, TableEntity(PartitionKey="p", RowKey="00003", n=-1))

            with pytest.raises(BatchDispatchError) as exc_info:
                await storage.insert_batch(name, rows(10))
            assert isinstance(exc_info.value.__cause__, EntityConflictError)

            await storage.insert_batch(name, rows(10), BatchInsertMethod.INSERT_OR_REPLACE)
            entity = await storage.get(name, "p", "00003")

            assert entity.model_extra["n"] == 3

    @pytest.mark.asyncio
    async def test_single_entity_crud(self):
        name = table_name()
        async with TableStorage(settings()) as storage:
            await storage.add(name, TableEntity(PartitionKey="p", RowKey="it's", n=1))
            await storage.add_or_merge(name, {"PartitionKey": "p", "RowKey": "it's", "m": 2})
            entity = await storage.get(name, "p", "it's")

            assert entity.model_extra == {"n": 1, "m": 2}

            await storage.delete(name, entity)
            assert await storage.get(name, "p", "it's") is None
