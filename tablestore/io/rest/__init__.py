"""Table service REST transport (aiohttp)."""

from .auth import Credential, SasCredential, SharedKeyLiteCredential, credential_from_settings
from .batch import decode_batch_response, encode_batch
from .errors import raise_for_status
from .handle import AzureTableHandle
from .http_client import HTTPClient, HTTPResponse
from .service import AzureTableService, validate_table_name

__all__ = [
    "AzureTableHandle",
    "AzureTableService",
    "Credential",
    "HTTPClient",
    "HTTPResponse",
    "SasCredential",
    "SharedKeyLiteCredential",
    "credential_from_settings",
    "decode_batch_response",
    "encode_batch",
    "raise_for_status",
    "validate_table_name",
]
