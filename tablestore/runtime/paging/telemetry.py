"""Structured logging for paging and batching operations.

This module provides telemetry hooks for the scanner and the dispatcher,
emitting structured log records. Telemetry observes only; errors are always
re-raised by the caller after being logged.
"""

from __future__ import annotations

import logging

from .definitions import BatchResult, ScanResult

logger = logging.getLogger(__name__)


def log_page_fetched(
    *,
    table: str,
    page_index: int,
    rows: int,
    page_size: int | None,
    has_more: bool,
    latency_ms: float | None = None,
) -> None:
    """Log a single segment fetch.

    Args:
        table: Table name
        page_index: Zero-based index of the page within the scan
        rows: Number of entities the page returned
        page_size: Cap requested for this page (None = provider default)
        has_more: Whether a continuation cursor came back
        latency_ms: Round-trip latency in milliseconds
    """
    logger.debug(
        "page_fetched",
        extra={
            "table": table,
            "page_index": page_index,
            "rows": rows,
            "page_size": page_size,
            "has_more": has_more,
            "latency_ms": latency_ms,
        },
    )


def log_page_fetch_error(
    *,
    table: str,
    page_index: int,
    error_type: str,
    error_message: str,
) -> None:
    logger.error(
        "page_fetch_error",
        extra={
            "table": table,
            "page_index": page_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_scan_complete(
    *,
    table: str,
    result: ScanResult,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a full scan or a bounded query.

    Args:
        table: Table name
        result: ScanResult of the finished operation
        total_latency_ms: Total latency in milliseconds
    """
    event = "scan_complete" if result.requested_count is None else "bounded_query_complete"
    logger.info(
        event,
        extra={
            "table": table,
            "pages_fetched": result.pages_fetched,
            "total_entities": result.total_entities,
            "requested_count": result.requested_count,
            "total_latency_ms": total_latency_ms,
        },
    )


def log_batch_plan(
    *,
    table: str,
    total_chunks: int,
    total_entities: int,
    method: str,
) -> None:
    logger.info(
        "batch_plan_created",
        extra={
            "table": table,
            "total_chunks": total_chunks,
            "total_entities": total_entities,
            "method": method,
        },
    )


def log_batch_chunk_completed(
    *,
    table: str,
    chunk_index: int,
    entities: int,
    latency_ms: float | None = None,
) -> None:
    logger.debug(
        "batch_chunk_completed",
        extra={
            "table": table,
            "chunk_index": chunk_index,
            "entities": entities,
            "latency_ms": latency_ms,
        },
    )


def log_batch_chunk_error(
    *,
    table: str,
    chunk_index: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a failed chunk write.

    Args:
        table: Table name
        chunk_index: Zero-based index of the chunk that failed
        error_type: Exception class name
        error_message: Exception message
    """
    logger.error(
        "batch_chunk_error",
        extra={
            "table": table,
            "chunk_index": chunk_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_batch_dispatch_complete(
    *,
    table: str,
    result: BatchResult,
    total_latency_ms: float | None = None,
) -> None:
    logger.info(
        "batch_dispatch_complete",
        extra={
            "table": table,
            "chunks_dispatched": result.chunks_dispatched,
            "total_entities": result.total_entities,
            "total_latency_ms": total_latency_ms,
        },
    )
