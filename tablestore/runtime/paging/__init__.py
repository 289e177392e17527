"""Paging and batching layer over bounded provider primitives.

This module turns the store's bounded, cursor-driven reads and size-capped
batch writes into unbounded or precisely-bounded logical operations.

Architecture:
    The paging layer consists of:
    - definitions.py: Policies and results (PagePolicy, BatchPolicy, ScanResult, ...)
    - planners.py: Page-cap and chunk planning
    - scanner.py: Full scans and bounded-count queries
    - dispatcher.py: Concurrent batch dispatch with ordered reassembly
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .definitions import BatchChunk, BatchPolicy, BatchResult, PagePolicy, ScanResult
from .dispatcher import BatchDispatcher
from .planners import BatchPlanner, next_page_cap
from .scanner import SegmentScanner

__all__ = [
    "PagePolicy",
    "BatchPolicy",
    "BatchChunk",
    "ScanResult",
    "BatchResult",
    "BatchPlanner",
    "next_page_cap",
    "SegmentScanner",
    "BatchDispatcher",
]
