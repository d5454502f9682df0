"""
Infrastructure package for simpledb-splits.

Centralizes SimpleDB connectivity concerns (client factory, query
construction, the paged store client). Keep this layer focused on I/O and
resource management, decoupled from planning and reading logic.
"""

from sdbsplits.infrastructure.query import MAX_SELECT_LIMIT, QueryPlan
from sdbsplits.infrastructure.sdb_factory import build_client, sdb_client
from sdbsplits.infrastructure.store_client import StoreClient

__all__ = [
    "MAX_SELECT_LIMIT",
    "QueryPlan",
    "StoreClient",
    "build_client",
    "sdb_client",
]
