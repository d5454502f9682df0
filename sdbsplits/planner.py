"""
Split planning for simpledb-splits.

The planner runs once on the coordinating process. It counts the rows to read
(the whole domain, or the rows matching the configured where clause), cuts
``[0, total_items)`` into ranges of at most ``split_size`` rows, and finds the
continuation token at which each range starts.

Usage:
    from sdbsplits.planner import plan_splits

    splits = plan_splits({"simpledb.domain": "events", "simpledb.split.size": "50000"})
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from sdbsplits.config import StoreConfig
from sdbsplits.domain.models import Split
from sdbsplits.errors import PlanningError, StoreError
from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.strategies import BoundaryStrategy, resolve_strategy
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)


def split_count(total_items: int, split_size: int) -> int:
    """Number of splits needed; the remainder gets its own shorter split."""
    if split_size <= 0:
        raise ValueError("split_size must be positive")
    return max(1, -(-total_items // split_size))


def split_ranges(total_items: int, split_size: int) -> List[tuple[int, int]]:
    """``(start_row, end_row)`` of every split, in order."""
    return [
        (index * split_size, min(index * split_size + split_size, total_items))
        for index in range(split_count(total_items, split_size))
    ]


class SplitPlanner:
    """
    Partition a SimpleDB domain into ordered, contiguous splits.

    Parameters
    ----------
    config : StoreConfig
        Domain, where clause, split size and boundary mode.
    client : StoreClient | None
        Client to plan with. When omitted the planner opens its own and closes
        it before ``plan()`` returns.
    strategy : BoundaryStrategy | None
        Overrides the strategy named by ``config.boundary_mode``.
    """

    def __init__(
        self,
        config: StoreConfig,
        client: Optional[StoreClient] = None,
        strategy: Optional[BoundaryStrategy] = None,
    ) -> None:
        self.config = config
        self.split_size = config.split_size
        self.strategy = strategy or resolve_strategy(config.boundary_mode)
        self._client = client

    def total_items(self, client: StoreClient) -> int:
        if client.where_clause is not None:
            return client.total_count(client.where_clause)
        return client.total_item_count()

    def plan(self) -> List[Split]:
        """
        Compute every split of the domain.

        Raises
        ------
        PlanningError
            If any store call fails or the count walk cannot reach a boundary.
            No partial split list is ever returned.
        """
        client = self._client if self._client is not None else StoreClient(self.config)
        try:
            return self._plan(client)
        except StoreError as exc:
            log.error(
                "Split planning aborted for domain %s: %s",
                self.config.domain,
                exc,
                extra={"domain": self.config.domain, "boundary_mode": self.strategy.name},
            )
            raise PlanningError(f"Split planning for {self.config.domain!r} failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

    def _plan(self, client: StoreClient) -> List[Split]:
        total_items = self.total_items(client)
        total_splits = split_count(total_items, self.split_size)
        log.info(
            "Planning %d split(s) over %d rows",
            total_splits,
            total_items,
            extra={
                "domain": self.config.domain,
                "total_rows": total_items,
                "total_splits": total_splits,
                "split_size": self.split_size,
                "boundary_mode": self.strategy.name,
            },
        )

        splits: List[Split] = []
        tokens = self.strategy.tokens(client, client.where_clause, self.split_size, total_splits)
        for (start_row, end_row), token in zip(split_ranges(total_items, self.split_size), tokens):
            split = Split(start_row=start_row, end_row=end_row, continuation_token=token)
            splits.append(split)
            log.debug("Created Split: %s", split)

        if len(splits) != total_splits:
            raise PlanningError(
                f"Boundary strategy {self.strategy.name!r} produced {len(splits)} "
                f"token(s) for {total_splits} split(s)"
            )
        return splits


def plan_splits(conf: Mapping[str, str], client: Optional[StoreClient] = None) -> List[Split]:
    """Plan splits straight from a job configuration map."""
    return SplitPlanner(StoreConfig.from_mapping(conf), client=client).plan()


__all__ = ["SplitPlanner", "plan_splits", "split_count", "split_ranges"]
