"""Request credentials for the table service.

Two schemes are supported:
    - Shared Key Lite: HMAC-SHA256 over the request date and canonicalized
      resource, keyed with the base64-decoded account key
    - SAS: a pre-issued token appended to the query string
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from email.utils import formatdate
from typing import Protocol
from urllib.parse import parse_qs, urlsplit

from ...config import StorageSettings
from ...core.exceptions import ConfigurationError


class Credential(Protocol):
    def sign(self, method: str, url: str, headers: dict[str, str]) -> str:
        """Authorize a request in place; returns the (possibly amended) URL."""
        ...


class SharedKeyLiteCredential:
    """Shared Key Lite signing for the Table service."""

    def __init__(self, account_name: str, account_key: str) -> None:
        self.account_name = account_name
        try:
            self._key = base64.b64decode(account_key, validate=True)
        except ValueError as exc:
            raise ConfigurationError("account key is not valid base64") from exc

    def canonicalized_resource(self, url: str) -> str:
        parts = urlsplit(url)
        resource = f"/{self.account_name}{parts.path}"
        comp = parse_qs(parts.query).get("comp")
        if comp:
            resource += f"?comp={comp[0]}"
        return resource

    def sign(self, method: str, url: str, headers: dict[str, str]) -> str:
        date = formatdate(usegmt=True)
        headers["x-ms-date"] = date
        string_to_sign = f"{date}\n{self.canonicalized_resource(url)}"
        digest = hmac.new(self._key, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
        signature = base64.b64encode(digest).decode("ascii")
        headers["Authorization"] = f"SharedKeyLite {self.account_name}:{signature}"
        return url


class SasCredential:
    """Shared access signature appended to every request URL."""

    def __init__(self, token: str) -> None:
        self._token = token.lstrip("?")

    def sign(self, method: str, url: str, headers: dict[str, str]) -> str:
        headers["x-ms-date"] = formatdate(usegmt=True)
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{self._token}"


def credential_from_settings(settings: StorageSettings) -> Credential:
    """Prefer the account key; fall back to the SAS token."""
    if settings.account_key:
        return SharedKeyLiteCredential(settings.account_name, settings.account_key)
    if settings.sas_token:
        return SasCredential(settings.sas_token)
    raise ConfigurationError("settings carry no credential")
