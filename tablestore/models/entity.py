"""Table entity data model."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

# The service reports 100ns ticks; datetime holds microseconds
_TICKS_RE = re.compile(r"(\.\d{6})\d+")


class TableEntity(BaseModel):
    """A row in a partitioned table, identified by (partition key, row key).

    Everything beyond the two keys is opaque payload. Subclasses declare typed
    properties; undeclared properties are kept as extras so a plain
    ``TableEntity`` round-trips any row.
    """

    partition_key: str = Field(..., alias="PartitionKey")
    row_key: str = Field(..., alias="RowKey")
    timestamp: datetime | None = Field(default=None, alias="Timestamp")
    etag: str | None = None

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _trim_ticks(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _TICKS_RE.sub(r"\1", v)
        return v

    @property
    def key(self) -> tuple[str, str]:
        """(partition key, row key) pair."""
        return (self.partition_key, self.row_key)

    def to_payload(self) -> dict[str, Any]:
        """Build a fresh wire payload for writes.

        Provider-managed fields (timestamp, etag) are never sent.
        """
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"timestamp", "etag"},
            exclude_none=True,
        )

    @classmethod
    def from_storage(cls, row: Mapping[str, Any]) -> Self:
        """Parse a row as returned by the store, dropping OData annotations."""
        data = {
            name: value
            for name, value in row.items()
            if not name.startswith("odata.") and "@odata." not in name
        }
        etag = row.get("odata.etag")
        if etag is not None:
            data["etag"] = etag
        return cls.model_validate(data)
