"""
SimpleDB store client for simpledb-splits.

Wraps one boto3 SimpleDB client and exposes the primitives the planner and
readers are built on: paged ``COUNT(*)`` and ``SELECT *`` queries resumed from
continuation tokens, and the domain item count from DomainMetadata.

A failed call never looks like an empty page. ``count()`` and ``select()``
return a ``QueryResult`` whose ``failure`` is set; the aggregate helpers
(``total_count``, ``iter_items``, ``unique_values``) raise the matching
``StoreError`` instead.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from sdbsplits.config import StoreConfig
from sdbsplits.domain.models import QueryResult, Record, StoreFailure
from sdbsplits.errors import MalformedResponseError
from sdbsplits.infrastructure.query import MAX_SELECT_LIMIT, count_query, select_query
from sdbsplits.infrastructure.sdb_factory import build_client
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)


def _rejected(exc: ClientError, query: Optional[str], domain: str) -> StoreFailure:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error", {})
    metadata = response.get("ResponseMetadata", {})
    return StoreFailure(
        kind="remote_rejected",
        message=error.get("Message") or str(exc),
        query=query,
        domain=domain,
        status_code=metadata.get("HTTPStatusCode"),
        error_code=error.get("Code"),
        error_type=error.get("Type"),
        request_id=metadata.get("RequestId"),
    )


def _log_failure(operation: str, failure: StoreFailure) -> None:
    if failure.kind == "remote_rejected":
        log.error(
            "SimpleDB rejected %s: code=%s status=%s type=%s request_id=%s query=%r: %s",
            operation,
            failure.error_code,
            failure.status_code,
            failure.error_type,
            failure.request_id,
            failure.query,
            failure.message,
            extra={
                "domain": failure.domain,
                "query": failure.query,
                "status_code": failure.status_code,
                "error_code": failure.error_code,
                "error_type": failure.error_type,
                "request_id": failure.request_id,
            },
        )
    else:
        log.error(
            "Could not reach SimpleDB for %s: %s",
            operation,
            failure.message,
            extra={"domain": failure.domain, "query": failure.query},
        )


class StoreClient:
    """
    Query primitives over one SimpleDB domain.

    Each instance owns its boto3 client and is meant to serve a single planner
    or a single split reader. Pass ``client`` to inject a pre-built (or fake)
    boto3 client; it is closed together with this StoreClient.
    """

    def __init__(self, config: StoreConfig, client: Any = None) -> None:
        self.config = config
        self.domain = config.domain
        self.where_clause: Optional[str] = config.where_clause
        self._client = client if client is not None else build_client(config)
        self._closed = False

    # -- single calls ---------------------------------------------------

    def execute(self, query: str, token: Optional[str] = None) -> QueryResult:
        """Run one select expression, resuming from ``token`` when given."""
        log.debug("Running Query: %s", query, extra={"domain": self.domain, "resumed": token is not None})
        request: Dict[str, Any] = {
            "SelectExpression": query,
            "ConsistentRead": self.config.consistent_read,
        }
        if token is not None:
            request["NextToken"] = token

        try:
            response = self._client.select(**request)
        except ClientError as exc:
            failure = _rejected(exc, query, self.domain)
            _log_failure("select", failure)
            return QueryResult.failed(failure)
        except BotoCoreError as exc:
            failure = StoreFailure(
                kind="transport_failure", message=str(exc), query=query, domain=self.domain
            )
            _log_failure("select", failure)
            return QueryResult.failed(failure)

        return QueryResult(
            items=[Record.from_item(item) for item in response.get("Items", [])],
            next_token=response.get("NextToken"),
        )

    def count(
        self,
        where_clause: Optional[str],
        limit: Optional[int] = None,
        token: Optional[str] = None,
    ) -> QueryResult:
        """``SELECT COUNT(*)``; the count rides on a single synthetic item."""
        return self.execute(count_query(self.domain, where_clause, limit), token)

    def select(
        self,
        where_clause: Optional[str],
        limit: Optional[int] = None,
        token: Optional[str] = None,
    ) -> QueryResult:
        """``SELECT *`` page."""
        return self.execute(select_query(self.domain, where_clause, limit), token)

    def total_item_count(self) -> int:
        """
        Exact item count of the whole domain, from DomainMetadata.

        Raises
        ------
        StoreError
            If the metadata call fails or lacks ``ItemCount``.
        """
        try:
            response = self._client.domain_metadata(DomainName=self.domain)
        except ClientError as exc:
            failure = _rejected(exc, None, self.domain)
            _log_failure("domain_metadata", failure)
            raise failure.to_exception() from exc
        except BotoCoreError as exc:
            failure = StoreFailure(kind="transport_failure", message=str(exc), domain=self.domain)
            _log_failure("domain_metadata", failure)
            raise failure.to_exception() from exc

        if "ItemCount" not in response:
            raise MalformedResponseError(f"DomainMetadata for {self.domain!r} has no ItemCount")
        return int(response["ItemCount"])

    # -- aggregates -----------------------------------------------------

    def total_count(self, where_clause: Optional[str]) -> int:
        """Count every item matching ``where_clause``, following count pages."""
        result = self.count(where_clause)
        total = result.count_value()
        while result.next_token is not None:
            result = self.count(where_clause, token=result.next_token)
            total += result.count_value()
        log.debug("Counted %d items", total, extra={"domain": self.domain, "where": where_clause})
        return total

    def iter_items(
        self,
        where_clause: Optional[str],
        token: Optional[str],
        limit: int,
    ) -> Iterator[Record]:
        """
        Lazily yield up to ``limit`` records starting at ``token``.

        Pages are fetched one at a time with the maximum page size, so the
        generator can be abandoned between pages. Stops early when the store
        reports no further token.
        """
        collected = 0
        current = token
        while collected < limit:
            result = self.select(where_clause, MAX_SELECT_LIMIT, current).raise_for_failure()
            for record in result.items:
                if collected >= limit:
                    break
                collected += 1
                yield record
            current = result.next_token
            if current is None:
                break

    def get_items(self, where_clause: Optional[str], token: Optional[str], limit: int) -> List[Record]:
        return list(self.iter_items(where_clause, token, limit))

    def unique_values(self, field: str, where_clause: Optional[str] = None) -> Counter:
        """
        Count how often each value of attribute ``field`` occurs.

        Walks every page of ``SELECT *``; items without the attribute are
        skipped.
        """
        occurrences: Counter = Counter()
        token: Optional[str] = None
        while True:
            result = self.select(where_clause, token=token).raise_for_failure()
            for record in result.items:
                value = record.attributes.get(field)
                if value is None:
                    continue
                if value not in occurrences:
                    log.debug("%d - %s", len(occurrences) + 1, value)
                occurrences[value] += 1
            token = result.next_token
            if token is None:
                return occurrences

    # -- lifecycle ------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the underlying client. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._client.close()

    def __enter__(self) -> "StoreClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["StoreClient"]
