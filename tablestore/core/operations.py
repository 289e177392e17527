"""Batch write operations and the insert-method call-builder table.

Each ``BatchInsertMethod`` maps to exactly one builder that turns an entity
into the provider write for that method. Dispatch is a table lookup so adding
a method means adding one builder and one table entry.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from ..models import TableEntity
from .enums import BatchInsertMethod


@dataclass(frozen=True)
class BatchOperation:
    """A single entity write inside a batch request.

    Attributes:
        method: Insert method the operation was built for
        verb: HTTP verb the provider expects (POST, PUT or MERGE)
        partition_key: Partition key of the target entity
        row_key: Row key of the target entity
        payload: Wire payload (a fresh dict, never the caller's object)
    """

    method: BatchInsertMethod
    verb: str
    partition_key: str
    row_key: str
    payload: dict[str, Any]

    @property
    def key(self) -> tuple[str, str]:
        return (self.partition_key, self.row_key)


@dataclass(frozen=True)
class EntityWriteResult:
    """Outcome of writing one entity.

    Attributes:
        partition_key: Partition key of the written entity
        row_key: Row key of the written entity
        status_code: Provider status for this entity (e.g. 201, 204)
        etag: ETag assigned by the provider, if returned
    """

    partition_key: str
    row_key: str
    status_code: int
    etag: str | None = None


def _build_insert(entity: TableEntity) -> BatchOperation:
    return BatchOperation(
        method=BatchInsertMethod.INSERT,
        verb="POST",
        partition_key=entity.partition_key,
        row_key=entity.row_key,
        payload=entity.to_payload(),
    )


def _build_insert_or_replace(entity: TableEntity) -> BatchOperation:
    return BatchOperation(
        method=BatchInsertMethod.INSERT_OR_REPLACE,
        verb="PUT",
        partition_key=entity.partition_key,
        row_key=entity.row_key,
        payload=entity.to_payload(),
    )


def _build_insert_or_merge(entity: TableEntity) -> BatchOperation:
    return BatchOperation(
        method=BatchInsertMethod.INSERT_OR_MERGE,
        verb="MERGE",
        partition_key=entity.partition_key,
        row_key=entity.row_key,
        payload=entity.to_payload(),
    )


OPERATION_BUILDERS: Mapping[BatchInsertMethod, Callable[[TableEntity], BatchOperation]] = (
    MappingProxyType(
        {
            BatchInsertMethod.INSERT: _build_insert,
            BatchInsertMethod.INSERT_OR_REPLACE: _build_insert_or_replace,
            BatchInsertMethod.INSERT_OR_MERGE: _build_insert_or_merge,
        }
    )
)


def as_entity(entity: TableEntity | Mapping[str, Any]) -> TableEntity:
    """Accept either a model or a plain row mapping (OData annotations dropped)."""
    if isinstance(entity, TableEntity):
        return entity
    return TableEntity.from_storage(entity)


def build_batch(
    entities: Iterable[TableEntity | Mapping[str, Any]],
    method: BatchInsertMethod | str = BatchInsertMethod.INSERT,
) -> list[BatchOperation]:
    """Build one batch request, applying ``method`` to every entity.

    Args:
        entities: Entities of a single chunk, in order
        method: Insert method (enum member or its string value)

    Returns:
        Operations in the same order as ``entities``
    """
    builder = OPERATION_BUILDERS[BatchInsertMethod(method)]
    return [builder(as_entity(entity)) for entity in entities]
