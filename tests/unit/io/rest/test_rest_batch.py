"""Unit tests for the $batch multipart codec."""

from __future__ import annotations

import json

import pytest

from tablestore.core import BatchInsertMethod, EntityConflictError, ProviderError, build_batch
from tablestore.io.rest import HTTPResponse, decode_batch_response, encode_batch

TABLE_URL = "https://acct.table.core.windows.net/orders"


def batch_response(parts: list[str]) -> HTTPResponse:
    lines = [
        "--batchresponse_1",
        "Content-Type: multipart/mixed; boundary=changesetresponse_1",
        "",
    ]
    for part in parts:
        lines.extend(
            [
                "--changesetresponse_1",
                "Content-Type: application/http",
                "Content-Transfer-Encoding: binary",
                "",
                part,
            ]
        )
    lines.extend(["--changesetresponse_1--", "--batchresponse_1--", ""])
    return HTTPResponse(
        status=202,
        headers={"content-type": "multipart/mixed; boundary=batchresponse_1"},
        body="\r\n".join(lines).encode(),
    )


def no_content(etag: str) -> str:
    return "\r\n".join(
        [
            "HTTP/1.1 204 No Content",
            "X-Content-Type-Options: nosniff",
            "DataServiceVersion: 1.0;",
            f'ETag: W/"{etag}"',
            "",
            "",
        ]
    )


class TestEncodeBatch:
    """Test encode_batch."""

    def test_layout(self):
        """Test boundaries, verbs and payloads of the request body."""
        operations = build_batch(
            [{"PartitionKey": "p", "RowKey": "1", "n": 1}, {"PartitionKey": "p", "RowKey": "2"}]
        )
        content_type, body = encode_batch(operations, TABLE_URL, boundary_id="abc")
        text = body.decode()

        assert content_type == "multipart/mixed; boundary=batch_abc"
        assert text.startswith("--batch_abc\r\nContent-Type: multipart/mixed; boundary=changeset_abc\r\n")
        assert text.count("--changeset_abc\r\n") == 2
        assert f"POST {TABLE_URL} HTTP/1.1\r\n" in text
        assert json.dumps({"PartitionKey": "p", "RowKey": "1", "n": 1}) in text
        assert text.endswith("--changeset_abc--\r\n--batch_abc--\r\n")

    @pytest.mark.parametrize(
        "method,verb",
        [(BatchInsertMethod.INSERT_OR_REPLACE, "PUT"), (BatchInsertMethod.INSERT_OR_MERGE, "MERGE")],
    )
    def test_upserts_address_the_entity(self, method, verb):
        """Test replace/merge operations target the entity URL."""
        operations = build_batch([{"PartitionKey": "p", "RowKey": "it's"}], method)
        _, body = encode_batch(operations, TABLE_URL, boundary_id="abc")

        expected = f"{verb} {TABLE_URL}(PartitionKey='p',RowKey='it%27%27s') HTTP/1.1"
        assert expected in body.decode()
        assert "If-Match" not in body.decode()


class TestDecodeBatchResponse:
    """Test decode_batch_response."""

    def test_success(self):
        """Test one result per operation, in order, with etags."""
        operations = build_batch([{"PartitionKey": "p", "RowKey": "1"}, {"PartitionKey": "p", "RowKey": "2"}])
        response = batch_response([no_content("e1"), no_content("e2")])

        results = decode_batch_response(response, operations)

        assert [(r.row_key, r.status_code, r.etag) for r in results] == [
            ("1", 204, 'W/"e1"'),
            ("2", 204, 'W/"e2"'),
        ]

    def test_changeset_failure(self):
        """Test the embedded error response is raised as a mapped error."""
        operations = build_batch([{"PartitionKey": "p", "RowKey": "1"}, {"PartitionKey": "p", "RowKey": "2"}])
        error = json.dumps(
            {
                "odata.error": {
                    "code": "EntityAlreadyExists",
                    "message": {"lang": "en-US", "value": "1:The specified entity already exists."},
                }
            }
        )
        failure = "\r\n".join(
            [
                "HTTP/1.1 409 Conflict",
                "Content-Type: application/json;odata=minimalmetadata;streaming=true;charset=utf-8",
                "",
                error,
            ]
        )

        with pytest.raises(EntityConflictError) as exc_info:
            decode_batch_response(batch_response([failure]), operations)

        assert str(exc_info.value).startswith("1:")

    def test_error_without_headers(self):
        """Test an embedded response with a body but no headers."""
        operations = build_batch([{"PartitionKey": "p", "RowKey": "1"}])
        failure = "HTTP/1.1 400 Bad Request\r\n\r\n" + json.dumps(
            {"odata.error": {"code": "InvalidInput", "message": {"value": "0:bad"}}}
        )

        with pytest.raises(ProviderError) as exc_info:
            decode_batch_response(batch_response([failure]), operations)

        assert exc_info.value.error_code == "InvalidInput"

    def test_part_count_mismatch(self):
        """Test a response that does not line up with the request fails."""
        operations = build_batch([{"PartitionKey": "p", "RowKey": "1"}, {"PartitionKey": "p", "RowKey": "2"}])

        with pytest.raises(ProviderError, match="parts"):
            decode_batch_response(batch_response([no_content("e1")]), operations)
