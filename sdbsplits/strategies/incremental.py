"""
Incremental boundary strategy (default).

Walks the domain once and carries the running count and continuation token
from one split boundary to the next, so planning ``n`` splits costs about
``n`` count queries. Produces the same tokens as the restarting strategy.
"""

from __future__ import annotations

from typing import Iterator, Optional

from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.strategies.abstract import AbstractBoundaryStrategy, advance_walk
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)


class IncrementalBoundaryStrategy(AbstractBoundaryStrategy):
    name: str = "incremental"
    description: str = "Single count walk; each boundary resumes from the previous one."

    def tokens(
        self,
        client: StoreClient,
        where_clause: Optional[str],
        split_size: int,
        total_splits: int,
    ) -> Iterator[Optional[str]]:
        token: Optional[str] = None
        counted = 0
        for page in range(total_splits):
            token, counted = advance_walk(
                client, where_clause, split_size, token, counted, page * split_size
            )
            log.debug("Boundary for page %d found after %d rows", page, counted)
            yield token


__all__ = ["IncrementalBoundaryStrategy"]
