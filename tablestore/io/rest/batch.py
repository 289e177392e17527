"""Entity group transaction (``$batch``) codec.

A batch request is a ``multipart/mixed`` body holding one changeset; each
changeset part is an embedded HTTP request. The response mirrors that
layout: on success one embedded response per operation (in order), on
failure a single embedded error response for the whole changeset.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Sequence
from uuid import uuid4

from ...core.exceptions import ProviderError
from ...core.operations import BatchOperation, EntityWriteResult
from .endpoints import entity_path
from .errors import raise_for_status
from .http_client import JSON_MINIMAL_METADATA, HTTPResponse

CRLF = "\r\n"

_BOUNDARY_LINE_RE = re.compile(r"\r?\n--[^\r\n]+")
_STATUS_LINE_RE = re.compile(r"^HTTP/1\.1 (\d{3})[^\r\n]*", re.MULTILINE)
_BLANK_LINE_RE = re.compile(r"\r?\n\r?\n")
_LEADING_NEWLINE_RE = re.compile(r"^\r?\n")


def _operation_url(operation: BatchOperation, table_url: str) -> str:
    if operation.verb == "POST":
        return table_url
    table_url, _, table = table_url.rpartition("/")
    return f"{table_url}/{entity_path(table, operation.partition_key, operation.row_key)}"


def encode_batch(
    operations: Sequence[BatchOperation],
    table_url: str,
    *,
    boundary_id: str | None = None,
) -> tuple[str, bytes]:
    """Serialize operations into a ``$batch`` body.

    Args:
        operations: Operations of one batch, in order
        table_url: Absolute URL of the table (``{endpoint}/{table}``)
        boundary_id: Fixed boundary suffix (random when omitted)

    Returns:
        Tuple of (Content-Type header value, encoded body)
    """
    boundary_id = boundary_id or uuid4().hex
    batch_boundary = f"batch_{boundary_id}"
    changeset_boundary = f"changeset_{boundary_id}"

    lines = [
        f"--{batch_boundary}",
        f"Content-Type: multipart/mixed; boundary={changeset_boundary}",
        "",
    ]
    for operation in operations:
        lines.extend(
            [
                f"--{changeset_boundary}",
                "Content-Type: application/http",
                "Content-Transfer-Encoding: binary",
                "",
                f"{operation.verb} {_operation_url(operation, table_url)} HTTP/1.1",
                "Content-Type: application/json",
                f"Accept: {JSON_MINIMAL_METADATA}",
                "Prefer: return-no-content",
                "DataServiceVersion: 3.0;",
                "",
                json.dumps(operation.payload),
            ]
        )
    lines.append(f"--{changeset_boundary}--")
    lines.append(f"--{batch_boundary}--")
    lines.append("")

    body = CRLF.join(lines).encode("utf-8")
    return f"multipart/mixed; boundary={batch_boundary}", body


def iter_embedded_responses(body: bytes) -> Iterator[HTTPResponse]:
    """Yield every embedded HTTP response of a multipart batch response."""
    text = "\n" + body.decode("utf-8")
    for part in _BOUNDARY_LINE_RE.split(text):
        match = _STATUS_LINE_RE.search(part)
        if match is None:
            continue
        rest = _LEADING_NEWLINE_RE.sub("", part[match.end():], count=1)
        if rest.startswith(("\r\n", "\n")):
            head, payload = "", rest
        else:
            pieces = _BLANK_LINE_RE.split(rest, maxsplit=1)
            head = pieces[0]
            payload = pieces[1] if len(pieces) > 1 else ""
        headers: dict[str, str] = {}
        for line in head.splitlines():
            name, sep, value = line.partition(":")
            if sep:
                headers[name.strip().lower()] = value.strip()
        yield HTTPResponse(
            status=int(match.group(1)),
            headers=headers,
            body=payload.strip().encode("utf-8"),
        )


def decode_batch_response(
    response: HTTPResponse,
    operations: Sequence[BatchOperation],
) -> list[EntityWriteResult]:
    """Turn a ``$batch`` response into per-operation results.

    Raises:
        ProviderError: The changeset failed (mapped from the embedded error
            response) or the response does not line up with the request
    """
    embedded = list(iter_embedded_responses(response.body))
    for part in embedded:
        raise_for_status(part)

    if len(embedded) != len(operations):
        raise ProviderError(
            f"batch response has {len(embedded)} parts for {len(operations)} operations",
            status_code=response.status,
        )

    return [
        EntityWriteResult(
            partition_key=operation.partition_key,
            row_key=operation.row_key,
            status_code=part.status,
            etag=part.headers.get("etag"),
        )
        for operation, part in zip(operations, embedded)
    ]
