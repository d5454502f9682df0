"""
Select expression construction for SimpleDB.

Every query the planner and readers issue has the shape::

    SELECT [COUNT(*)|*] FROM <domain> [WHERE <where clause>] [LIMIT <n>]

The where clause is passed through untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)

# SimpleDB caps LIMIT at 2500 items per page
MAX_SELECT_LIMIT = 2500

_BARE_NAME = re.compile(r"^[A-Za-z0-9_$]+$")


def quote_domain(domain: str) -> str:
    """Backtick-quote a domain name unless it only uses bare-name characters."""
    if _BARE_NAME.match(domain):
        return domain
    return "`" + domain.replace("`", "``") + "`"


@dataclass(frozen=True)
class QueryPlan:
    is_count: bool
    limit: Optional[int] = None

    def build(self, domain: str, where_clause: Optional[str] = None) -> str:
        projection = "COUNT(*)" if self.is_count else "*"
        query = f"SELECT {projection} FROM {quote_domain(domain)}"
        if where_clause:
            query += f" WHERE {where_clause}"
        if self.limit is not None and self.limit > 0:
            query += f" LIMIT {self.limit}"
        log.debug("Query: %s", query)
        return query


def count_query(domain: str, where_clause: Optional[str] = None, limit: Optional[int] = None) -> str:
    return QueryPlan(is_count=True, limit=limit).build(domain, where_clause)


def select_query(domain: str, where_clause: Optional[str] = None, limit: Optional[int] = None) -> str:
    return QueryPlan(is_count=False, limit=limit).build(domain, where_clause)


__all__ = ["MAX_SELECT_LIMIT", "QueryPlan", "count_query", "quote_domain", "select_query"]
