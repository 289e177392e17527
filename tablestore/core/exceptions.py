"""Custom exception hierarchy."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .operations import EntityWriteResult


class TableStoreError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(TableStoreError):
    """Settings or connection string could not be interpreted."""

    pass


class ValidationError(TableStoreError):
    """Invalid argument rejected before reaching the provider."""

    pass


class ProviderError(TableStoreError):
    """Error from the remote table store or its transport."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class EntityNotFoundError(ProviderError):
    """Entity or table does not exist."""

    def __init__(self, message: str, error_code: str | None = "ResourceNotFound") -> None:
        super().__init__(message, status_code=404, error_code=error_code)


class EntityConflictError(ProviderError):
    """Write conflicts with existing state (e.g. entity already exists)."""

    def __init__(self, message: str, error_code: str | None = "EntityAlreadyExists") -> None:
        super().__init__(message, status_code=409, error_code=error_code)


class PreconditionFailedError(ProviderError):
    """ETag supplied with a conditional write no longer matches."""

    def __init__(self, message: str, error_code: str | None = "UpdateConditionNotSatisfied") -> None:
        super().__init__(message, status_code=412, error_code=error_code)


class ThrottledError(ProviderError):
    """Provider is throttling requests (server busy or rate limited)."""

    def __init__(
        self,
        message: str,
        status_code: int = 503,
        retry_after: int | None = None,
        error_code: str | None = "ServerBusy",
    ) -> None:
        super().__init__(message, status_code=status_code, error_code=error_code)
        self.retry_after = retry_after


class BatchDispatchError(ExceptionGroup, TableStoreError):
    """One or more chunks of a batch write failed.

    The chunk exceptions are grouped in submission order, so callers can
    match provider errors with ``except*`` (e.g. ``except* EntityConflictError``).

    Chunks are not rolled back: ``committed`` holds the per-entity results of
    every chunk that was written, keyed by chunk index, so callers can work
    out which part of the input is already stored.
    """

    def __new__(
        cls,
        message: str,
        exceptions: Sequence[Exception] | None = None,
        *,
        failures: dict[int, Exception],
        committed: dict[int, list[EntityWriteResult]],
        chunk_count: int,
    ) -> BatchDispatchError:
        if exceptions is None:
            exceptions = [failures[index] for index in sorted(failures)]
        self = super().__new__(cls, message, exceptions)
        self.failures = failures
        self.committed = committed
        self.chunk_count = chunk_count
        return self

    def __init__(
        self,
        message: str,
        exceptions: Sequence[Exception] | None = None,
        *,
        failures: dict[int, Exception],
        committed: dict[int, list[EntityWriteResult]],
        chunk_count: int,
    ) -> None:
        super().__init__(message, self.exceptions)

    def derive(self, excs: Sequence[Exception]) -> BatchDispatchError:
        # Used by except* splitting; the dispatch metadata is kept as is
        return BatchDispatchError(
            self.message,
            excs,
            failures=self.failures,
            committed=self.committed,
            chunk_count=self.chunk_count,
        )

    @property
    def is_partial(self) -> bool:
        """True when at least one chunk was committed before the failure."""
        return bool(self.committed)
