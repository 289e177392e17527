"""Batch write dispatch: split, scatter, gather, reorder.

This module provides the BatchDispatcher class that writes an arbitrary
number of entities through a BatchWriter limited to a fixed number of
entities per call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from contextlib import AsyncExitStack
from time import perf_counter
from typing import Any

from ...core.base import BatchWriter
from ...core.enums import BatchInsertMethod
from ...core.exceptions import BatchDispatchError, ProviderError
from ...core.operations import BatchOperation, EntityWriteResult, build_batch
from ...models import TableEntity
from .definitions import BatchChunk, BatchPolicy, BatchResult
from .planners import BatchPlanner
from .telemetry import (
    log_batch_chunk_completed,
    log_batch_chunk_error,
    log_batch_dispatch_complete,
)


class BatchDispatcher:
    """Writes entity collections of any size as provider-legal batches.

    All chunks are dispatched concurrently and awaited jointly. Results are
    reassembled by chunk submission index, so the output order always matches
    the input order whatever order the chunks complete in.

    Chunks are independent provider transactions: when one fails, chunks that
    already succeeded stay written. The raised BatchDispatchError reports
    which chunks were committed.
    """

    def __init__(self, policy: BatchPolicy | None = None, *, table: str = "unknown") -> None:
        """Initialize batch dispatcher.

        Args:
            policy: Batch policy (size limit and optional concurrency cap)
            table: Table name used in telemetry
        """
        self._policy = policy or BatchPolicy()
        self._table = table
        self._planner = BatchPlanner(self._policy, table=table)

    async def dispatch(
        self,
        writer: BatchWriter,
        entities: Iterable[TableEntity | Mapping[str, Any]],
        method: BatchInsertMethod | str = BatchInsertMethod.INSERT,
    ) -> BatchResult:
        """Write all entities and return their results in input order.

        Args:
            writer: Batch writer for the target table
            entities: Entities to write
            method: Insert method applied to every entity

        Returns:
            BatchResult with one result per input entity

        Raises:
            BatchDispatchError: If any chunk failed (after all chunks settled)
            ValueError: If ``method`` is not a known insert method
        """
        method = BatchInsertMethod(method)
        started = perf_counter()

        chunks = self._planner.plan(entities, method=method.value)
        if not chunks:
            result = BatchResult(results=[], chunks_dispatched=0)
            log_batch_dispatch_complete(table=self._table, result=result, total_latency_ms=0.0)
            return result

        semaphore = (
            asyncio.Semaphore(self._policy.max_concurrency)
            if self._policy.max_concurrency is not None
            else None
        )

        outcomes = await asyncio.gather(
            *(self._write_chunk(writer, chunk, method, semaphore) for chunk in chunks),
            return_exceptions=True,
        )

        # Slot results by submission index, never by completion order
        ordered: list[list[EntityWriteResult] | None] = [None] * len(chunks)
        failures: dict[int, Exception] = {}
        for chunk, outcome in zip(chunks, outcomes, strict=True):
            if isinstance(outcome, Exception):
                failures[chunk.chunk_index] = outcome
            elif isinstance(outcome, BaseException):
                # Cancellation of a chunk cancels the dispatch
                raise outcome
            else:
                ordered[chunk.chunk_index] = outcome

        if failures:
            committed = {
                index: chunk_results
                for index, chunk_results in enumerate(ordered)
                if chunk_results is not None
            }
            first_index = min(failures)
            raise BatchDispatchError(
                f"{len(failures)} of {len(chunks)} batch chunks failed "
                f"(first failure in chunk {first_index})",
                failures=failures,
                committed=committed,
                chunk_count=len(chunks),
            ) from failures[first_index]

        result = BatchResult(
            results=[entry for chunk_results in ordered if chunk_results for entry in chunk_results],
            chunks_dispatched=len(chunks),
        )
        log_batch_dispatch_complete(
            table=self._table,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def _write_chunk(
        self,
        writer: BatchWriter,
        chunk: BatchChunk,
        method: BatchInsertMethod,
        semaphore: asyncio.Semaphore | None,
    ) -> list[EntityWriteResult]:
        async with AsyncExitStack() as stack:
            if semaphore is not None:
                await stack.enter_async_context(semaphore)

            chunk_start = perf_counter()
            try:
                operations = _build_operations(chunk, method)
                results = await writer.execute_batch(operations)
                if len(results) != len(operations):
                    raise ProviderError(
                        f"batch returned {len(results)} results for {len(operations)} operations"
                    )
            except Exception as e:
                log_batch_chunk_error(
                    table=self._table,
                    chunk_index=chunk.chunk_index,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise

        log_batch_chunk_completed(
            table=self._table,
            chunk_index=chunk.chunk_index,
            entities=len(results),
            latency_ms=(perf_counter() - chunk_start) * 1000.0,
        )
        return list(results)


def _build_operations(chunk: BatchChunk, method: BatchInsertMethod) -> list[BatchOperation]:
    """Build the chunk's operations; a malformed entity fails the chunk."""
    try:
        return build_batch(chunk.entities, method)
    except ValueError as e:
        raise ProviderError(
            f"invalid entity in batch chunk {chunk.chunk_index}: {e}",
            status_code=400,
            error_code="InvalidInput",
        ) from e
