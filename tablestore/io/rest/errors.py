"""Mapping of table service error responses onto the exception hierarchy."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from ...core.exceptions import (
    EntityConflictError,
    EntityNotFoundError,
    PreconditionFailedError,
    ProviderError,
    ThrottledError,
)

if TYPE_CHECKING:
    from .http_client import HTTPResponse


def extract_error(response: HTTPResponse) -> tuple[str | None, str]:
    """Pull (error code, message) out of an error response.

    The service sends ``{"odata.error": {"code": ..., "message": {"value": ...}}}``
    and mirrors the code in ``x-ms-error-code``.
    """
    code = response.headers.get("x-ms-error-code")
    message = response.text().strip() or f"HTTP {response.status}"

    try:
        payload = json.loads(response.body) if response.body else None
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("odata.error") or payload.get("error") or {}
        code = error.get("code", code)
        detail = error.get("message")
        if isinstance(detail, dict):
            detail = detail.get("value")
        if detail:
            message = str(detail)

    return code, message


def raise_for_status(response: HTTPResponse) -> None:
    """Raise the matching ProviderError subclass for error statuses."""
    status = response.status
    if status < 400:
        return

    code, message = extract_error(response)

    if status == 404:
        raise EntityNotFoundError(message, error_code=code or "ResourceNotFound")
    if status == 409:
        raise EntityConflictError(message, error_code=code or "EntityAlreadyExists")
    if status == 412:
        raise PreconditionFailedError(message, error_code=code or "UpdateConditionNotSatisfied")
    if status in (429, 503):
        retry_after = response.headers.get("retry-after")
        raise ThrottledError(
            message,
            status_code=status,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            error_code=code or "ServerBusy",
        )
    raise ProviderError(message, status_code=status, error_code=code)
