"""
simpledb-splits - parallel reads of Amazon SimpleDB domains.

SimpleDB pages results with opaque continuation tokens and offers no row
offsets. This package:

- counts a domain (or the rows matching a where clause) and cuts it into
  bounded splits, each carrying the token it starts at
- serializes splits so they can be shipped to worker processes
- materializes each split on its worker and hands out its records one at a
  time, with progress reporting
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sdbsplits.config import MAX_SPLIT_SIZE, Settings, StoreConfig, get_settings
from sdbsplits.domain.models import QueryResult, Record, Split, StoreFailure
from sdbsplits.errors import (
    ConfigurationError,
    MalformedResponseError,
    PlanningError,
    RemoteRejectedError,
    SplitFormatError,
    SplitReadError,
    SplitsError,
    StoreError,
    TransportFailureError,
)
from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.orchestrator import RunConfig, drain_split, run_job
from sdbsplits.planner import SplitPlanner, plan_splits
from sdbsplits.reader import ReaderState, RecordSlot, SplitReader
from sdbsplits.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "MAX_SPLIT_SIZE",
    "Settings",
    "StoreConfig",
    "get_settings",
    # Domain
    "QueryResult",
    "Record",
    "Split",
    "StoreFailure",
    # Errors
    "ConfigurationError",
    "MalformedResponseError",
    "PlanningError",
    "RemoteRejectedError",
    "SplitFormatError",
    "SplitReadError",
    "SplitsError",
    "StoreError",
    "TransportFailureError",
    # Core
    "StoreClient",
    "SplitPlanner",
    "SplitReader",
    "ReaderState",
    "RecordSlot",
    "plan_splits",
    # Orchestration
    "RunConfig",
    "drain_split",
    "run_job",
    # Logging
    "configure_logging",
    "get_logger",
]
