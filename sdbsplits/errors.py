"""Exception hierarchy for simpledb-splits."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdbsplits.domain.models import StoreFailure


class SplitsError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(SplitsError):
    """Job configuration map is missing a key or holds an invalid value."""

    pass


class StoreError(SplitsError):
    """A SimpleDB call failed.

    The ``failure`` attribute keeps the details that were logged when the call
    failed (query, AWS error code, request id, ...).
    """

    def __init__(self, message: str, failure: StoreFailure | None = None) -> None:
        super().__init__(message)
        self.failure = failure


class RemoteRejectedError(StoreError):
    """The request reached SimpleDB but was rejected with an error response."""

    pass


class TransportFailureError(StoreError):
    """The client could not talk to SimpleDB (network, DNS, timeout)."""

    pass


class MalformedResponseError(StoreError):
    """SimpleDB answered but the response lacks an expected field."""

    pass


class PlanningError(SplitsError):
    """Split planning was aborted; no splits are emitted."""

    pass


class SplitReadError(SplitsError):
    """A split could not be materialized from SimpleDB."""

    pass


class SplitFormatError(SplitsError):
    """Serialized split bytes are truncated or corrupt."""

    pass


__all__ = [
    "ConfigurationError",
    "MalformedResponseError",
    "PlanningError",
    "RemoteRejectedError",
    "SplitFormatError",
    "SplitReadError",
    "SplitsError",
    "StoreError",
    "TransportFailureError",
]
