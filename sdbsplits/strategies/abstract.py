"""
Boundary-token strategy interfaces for simpledb-splits.

SimpleDB has no row offsets; the only way to reach row ``n`` is to walk
``COUNT(*) ... LIMIT <split size>`` pages from the start of the domain and keep
the continuation token returned once ``n`` rows have been counted. A boundary
strategy decides how that walk is organised across consecutive splits and
yields one token per split (``None`` for the first split).
"""

from __future__ import annotations

import abc
from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable

from sdbsplits.errors import PlanningError
from sdbsplits.infrastructure.store_client import StoreClient


def advance_walk(
    client: StoreClient,
    where_clause: Optional[str],
    limit: int,
    token: Optional[str],
    counted: int,
    threshold: int,
) -> Tuple[Optional[str], int]:
    """
    Continue a count walk until at least ``threshold`` rows have been counted.

    Parameters
    ----------
    client : StoreClient
        Client issuing the count queries.
    where_clause : str | None
        Filter applied to every count query.
    limit : int
        Largest ``LIMIT`` of a count query (the split size). The last query
        before ``threshold`` is capped at the rows still missing.
    token : str | None
        Token to resume from; None starts at the beginning of the domain.
    counted : int
        Rows already counted before ``token``.
    threshold : int
        Row count to reach.

    Returns
    -------
    tuple[str | None, int]
        The token returned by the query that crossed ``threshold`` and the new
        running count.

    Raises
    ------
    StoreError
        If a count query fails.
    PlanningError
        If the domain runs out (or stops advancing) before ``threshold``.
    """
    started = token is None and counted == 0
    while counted < threshold:
        if token is None and not started:
            raise PlanningError(
                f"Domain {client.domain!r} ended after {counted} rows; "
                f"expected at least {threshold}"
            )
        result = client.count(where_clause, min(limit, threshold - counted), token)
        page_count = result.count_value()
        if page_count <= 0 and result.next_token == token:
            raise PlanningError(
                f"Count walk over {client.domain!r} stopped advancing at {counted} rows"
            )
        counted += page_count
        token = result.next_token
        started = False
    if threshold > 0 and token is None:
        raise PlanningError(
            f"Domain {client.domain!r} has no rows past row {counted}; "
            f"cannot start a split there"
        )
    return token, counted


@runtime_checkable
class BoundaryStrategy(Protocol):
    """
    Common interface for boundary-token strategies.

    Attributes
    ----------
    name : str
        Value of ``simpledb.split.boundary.mode`` selecting the strategy.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    def tokens(
        self,
        client: StoreClient,
        where_clause: Optional[str],
        split_size: int,
        total_splits: int,
    ) -> Iterator[Optional[str]]:
        """
        Yield the starting token of each split, in split order.

        Exactly ``total_splits`` values are yielded; the first is None.
        """
        ...


class AbstractBoundaryStrategy(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses set `name` and `description` and implement `tokens`.
    """

    name: str
    description: str

    @abc.abstractmethod
    def tokens(
        self,
        client: StoreClient,
        where_clause: Optional[str],
        split_size: int,
        total_splits: int,
    ) -> Iterator[Optional[str]]:  # pragma: no cover - interface only
        """Yield one starting token per split."""
        raise NotImplementedError


__all__ = ["AbstractBoundaryStrategy", "BoundaryStrategy", "advance_walk"]
