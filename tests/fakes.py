"""
Test doubles for simpledb-splits.

Provides an in-memory stand-in for the boto3 SimpleDB client that understands
the select expressions the library generates:

- ``SELECT COUNT(*) | * FROM <domain> [WHERE ...] [LIMIT n]``
- continuation tokens that resume a walk where the previous page stopped
- ``domain_metadata`` item counts
- injected ``ClientError`` / ``BotoCoreError`` failures on chosen calls
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from botocore.exceptions import ClientError, EndpointConnectionError

from sdbsplits.config import StoreConfig
from sdbsplits.infrastructure.store_client import StoreClient

DOMAIN = "events"
DEFAULT_SELECT_LIMIT = 100
COLORS = ["red", "green", "blue"]

_LIMIT = re.compile(r" LIMIT (\d+)$")


def make_items(count: int) -> List[Dict[str, Any]]:
    """Items shaped like boto3 ``select`` output."""
    return [
        {
            "Name": f"item-{index:05d}",
            "Attributes": [
                {"Name": "n", "Value": str(index)},
                {"Name": "color", "Value": COLORS[index % len(COLORS)]},
            ],
        }
        for index in range(count)
    ]


def client_error(
    code: str = "InvalidQueryExpression",
    message: str = "The specified query expression syntax is not valid.",
    status: int = 400,
    operation: str = "Select",
) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message, "Type": "Sender"},
            "ResponseMetadata": {"HTTPStatusCode": status, "RequestId": "req-0001"},
        },
        operation,
    )


def transport_error() -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url="https://sdb.amazonaws.com")


class FakeSdbClient:
    """
    In-memory SimpleDB client.

    Parameters
    ----------
    items : list[dict]
        Items of the domain, in select order.
    where_filter : callable | None
        Predicate applied to items when the expression has a WHERE clause.
    count_page_cap : int | None
        Maximum rows an unlimited COUNT(*) page reports before returning a
        token, to exercise paginated counts.
    fail_on_call : dict[int, Exception]
        1-based select call number -> exception raised on that call.
    """

    def __init__(
        self,
        items: List[Dict[str, Any]],
        where_filter: Optional[Callable[[Dict[str, Any]], bool]] = None,
        count_page_cap: Optional[int] = None,
        fail_on_call: Optional[Dict[int, Exception]] = None,
        metadata_error: Optional[Exception] = None,
    ) -> None:
        self.items = items
        self.where_filter = where_filter
        self.count_page_cap = count_page_cap
        self.fail_on_call = dict(fail_on_call or {})
        self.metadata_error = metadata_error
        self.calls: List[Dict[str, Any]] = []
        self.metadata_calls = 0
        self.close_calls = 0

    @staticmethod
    def token_for(offset: int) -> str:
        return f"rO0ABXNy-{offset:07d}"

    @staticmethod
    def offset_of(token: Optional[str]) -> int:
        if token is None:
            return 0
        if not token.startswith("rO0ABXNy-"):
            raise client_error("InvalidNextToken", "The specified next token is not valid.")
        return int(token.split("-", 1)[1])

    def count_calls(self) -> int:
        return sum(1 for call in self.calls if "COUNT(*)" in call["SelectExpression"])

    def select_calls(self) -> int:
        return len(self.calls) - self.count_calls()

    def select(
        self,
        SelectExpression: str,
        NextToken: Optional[str] = None,
        ConsistentRead: bool = False,
    ) -> Dict[str, Any]:
        self.calls.append(
            {"SelectExpression": SelectExpression, "NextToken": NextToken, "ConsistentRead": ConsistentRead}
        )
        error = self.fail_on_call.get(len(self.calls))
        if error is not None:
            raise error

        matching = self.items
        if " WHERE " in SelectExpression and self.where_filter is not None:
            matching = [item for item in self.items if self.where_filter(item)]

        match = _LIMIT.search(SelectExpression)
        limit = int(match.group(1)) if match else None
        offset = self.offset_of(NextToken)
        remaining = max(0, len(matching) - offset)

        if "COUNT(*)" in SelectExpression:
            cap = limit if limit is not None else self.count_page_cap
            counted = remaining if cap is None else min(cap, remaining)
            response: Dict[str, Any] = {
                "Items": [{"Name": "Domain", "Attributes": [{"Name": "Count", "Value": str(counted)}]}]
            }
        else:
            page_size = limit if limit is not None else DEFAULT_SELECT_LIMIT
            counted = min(page_size, remaining)
            response = {"Items": matching[offset : offset + counted]}

        if offset + counted < len(matching):
            response["NextToken"] = self.token_for(offset + counted)
        return response

    def domain_metadata(self, DomainName: str) -> Dict[str, Any]:
        self.metadata_calls += 1
        if self.metadata_error is not None:
            raise self.metadata_error
        return {"ItemCount": len(self.items), "AttributeNameCount": 2}

    def close(self) -> None:
        self.close_calls += 1


def make_conf(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    conf: Dict[str, str] = {"simpledb.domain": DOMAIN}
    conf.update(overrides or {})
    return conf


def make_config(overrides: Optional[Mapping[str, str]] = None) -> StoreConfig:
    return StoreConfig.from_mapping(make_conf(overrides))


def make_store(fake: FakeSdbClient, conf: Optional[Mapping[str, str]] = None) -> StoreClient:
    return StoreClient(make_config(conf), client=fake)


