"""
Restarting boundary strategy.

Recomputes every split boundary with a fresh count walk from the start of the
domain. Split ``i`` costs ``i`` count queries, so planning ``n`` splits costs
O(n^2) queries. Kept for stores where a token is only trusted when it comes
from a walk that started at the beginning of the domain.
"""

from __future__ import annotations

from typing import Iterator, Optional

from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.strategies.abstract import AbstractBoundaryStrategy, advance_walk
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)


def boundary_token(
    client: StoreClient,
    where_clause: Optional[str],
    page: int,
    limit: int,
) -> Optional[str]:
    """
    Token marking the first row of split ``page`` for splits of ``limit`` rows.

    Walks ``COUNT(*) ... LIMIT <limit>`` pages from the start of the domain until
    ``page * limit`` rows are counted. Page 0 needs no query and returns None.
    """
    token, counted = advance_walk(client, where_clause, limit, None, 0, page * limit)
    log.debug("Boundary for page %d found after %d rows", page, counted)
    return token


class RestartBoundaryStrategy(AbstractBoundaryStrategy):
    name: str = "restart"
    description: str = "Fresh count walk from the start of the domain for every split."

    def tokens(
        self,
        client: StoreClient,
        where_clause: Optional[str],
        split_size: int,
        total_splits: int,
    ) -> Iterator[Optional[str]]:
        for page in range(total_splits):
            yield boundary_token(client, where_clause, page, split_size)


__all__ = ["RestartBoundaryStrategy", "boundary_token"]
