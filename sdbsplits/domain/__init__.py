"""
Domain package for simpledb-splits.

Exports the value types shared by the store client, planner, and reader.
Keep this package focused on data definitions and their wire format.
"""

from sdbsplits.domain.models import (
    COUNT_ATTRIBUTE,
    NULL_TOKEN,
    QueryResult,
    Record,
    Split,
    StoreFailure,
)

__all__ = [
    "COUNT_ATTRIBUTE",
    "NULL_TOKEN",
    "QueryResult",
    "Record",
    "Split",
    "StoreFailure",
]
