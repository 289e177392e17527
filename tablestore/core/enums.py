"""Core enumerations shared by the paging runtime and the table handles.

Key Types:
    - BatchInsertMethod: Write semantics applied uniformly to one batch call
    - UpdateMode: Replace vs merge for single-entity updates
    - QueryComparison: OData comparison operators for filter strings
    - TableOperator: OData boolean operators for combining filters
"""

from enum import Enum


class BatchInsertMethod(str, Enum):
    """Insert semantics for a batch write.

    Selected once per batch call and applied to every entity in it.
    """

    INSERT = "insert"  # fail if the key already exists
    INSERT_OR_REPLACE = "insert_or_replace"
    INSERT_OR_MERGE = "insert_or_merge"


class UpdateMode(str, Enum):
    """How an update treats properties missing from the submitted entity."""

    REPLACE = "replace"
    MERGE = "merge"


class QueryComparison(str, Enum):
    """OData comparison operators supported by the table store."""

    EQUAL = "eq"
    NOT_EQUAL = "ne"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "ge"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "le"


class TableOperator(str, Enum):
    """OData boolean operators."""

    AND = "and"
    OR = "or"
    NOT = "not"
