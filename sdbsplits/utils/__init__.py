"""
Utilities package for simpledb-splits.

Exports shared helpers for logging, profiling, and other cross-cutting concerns.
Keep this package lightweight and free of SimpleDB-specific logic.
"""

from sdbsplits.utils.logging import configure_logging, get_logger
from sdbsplits.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
