"""
Domain models for simpledb-splits.

- ``Record``: one SimpleDB item flattened to a key and an attribute map.
- ``Split``: a contiguous row range of a domain plus the continuation token
  needed to start reading it, with the bit-exact wire format shipped to
  workers.
- ``QueryResult`` / ``StoreFailure``: the outcome of a single SimpleDB call.
  A failed call is a result with ``failure`` set, never an empty page.
"""
from __future__ import annotations

import io
import struct
from typing import Any, BinaryIO, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from sdbsplits.errors import (
    MalformedResponseError,
    RemoteRejectedError,
    SplitFormatError,
    StoreError,
    TransportFailureError,
)

# Sentinel written in place of a missing continuation token
NULL_TOKEN = "NULL"

# Attribute SimpleDB uses for COUNT(*) results
COUNT_ATTRIBUTE = "Count"

_ROWS = struct.Struct(">QQ")
_TOKEN_LENGTH = struct.Struct(">H")
_UINT64_MAX = 2**64 - 1


class Record(BaseModel):
    """
    A single SimpleDB item.

    SimpleDB allows an attribute name to repeat on one item; the map keeps the
    last value seen for each name.
    """

    key: str = Field(..., description="Item name.")
    attributes: Dict[str, str] = Field(default_factory=dict, description="Attribute values.")

    model_config = {
        "frozen": True,
    }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "Record":
        """Build a Record from a boto3 ``Items`` entry."""
        attributes: Dict[str, str] = {}
        for attribute in item.get("Attributes", []):
            attributes[attribute["Name"]] = attribute["Value"]
        return cls(key=item["Name"], attributes=attributes)

    def as_tuple(self) -> tuple[str, Dict[str, str]]:
        return self.key, dict(self.attributes)


class Split(BaseModel):
    """
    Row range ``[start_row, end_row)`` of a domain and the token to start from.

    A ``continuation_token`` of None means the split starts at the beginning
    of the domain.
    """

    start_row: int = Field(..., ge=0, le=_UINT64_MAX)
    end_row: int = Field(..., ge=0, le=_UINT64_MAX)
    continuation_token: Optional[str] = None

    model_config = {
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_range(self) -> "Split":
        if self.end_row < self.start_row:
            raise ValueError(
                f"end_row ({self.end_row}) must not be before start_row ({self.start_row})"
            )
        return self

    def length(self) -> int:
        """Number of rows in the split."""
        return self.end_row - self.start_row

    def write(self, stream: BinaryIO) -> None:
        """
        Write the split in its wire format.

        Layout: 8-byte big-endian start row, 8-byte big-endian end row, then the
        token as a 2-byte big-endian length followed by UTF-8 bytes. A missing
        token is written as the text ``NULL``.
        """
        token = NULL_TOKEN if self.continuation_token is None else self.continuation_token
        encoded = token.encode("utf-8")
        if len(encoded) > 0xFFFF:
            raise ValueError(f"Continuation token too long to serialize ({len(encoded)} bytes)")
        stream.write(_ROWS.pack(self.start_row, self.end_row))
        stream.write(_TOKEN_LENGTH.pack(len(encoded)))
        stream.write(encoded)

    @classmethod
    def read(cls, stream: BinaryIO) -> "Split":
        """Read a split written by ``write``."""
        start_row, end_row = _ROWS.unpack(_read_exact(stream, _ROWS.size))
        (token_length,) = _TOKEN_LENGTH.unpack(_read_exact(stream, _TOKEN_LENGTH.size))
        try:
            token: Optional[str] = _read_exact(stream, token_length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SplitFormatError(f"Split token is not valid UTF-8: {exc}") from exc
        if token == NULL_TOKEN:
            token = None
        try:
            return cls(start_row=start_row, end_row=end_row, continuation_token=token)
        except ValueError as exc:
            raise SplitFormatError(f"Invalid split range: {exc}") from exc

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.write(buffer)
        return buffer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Split":
        stream = io.BytesIO(data)
        split = cls.read(stream)
        if stream.read(1):
            raise SplitFormatError("Trailing bytes after serialized split")
        return split

    def __str__(self) -> str:
        return (
            f"startRow={self.start_row}, endRow={self.end_row}, "
            f"splitToken={self.continuation_token}"
        )


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise SplitFormatError(f"Truncated split: expected {size} bytes, got {len(data)}")
    return data


FailureKind = Literal["remote_rejected", "transport_failure", "malformed_response"]


class StoreFailure(BaseModel):
    """Details of a failed SimpleDB call, as logged at the client boundary."""

    kind: FailureKind
    message: str
    query: Optional[str] = None
    domain: Optional[str] = None
    status_code: Optional[int] = None
    error_code: Optional[str] = None
    error_type: Optional[str] = None
    request_id: Optional[str] = None

    model_config = {
        "frozen": True,
    }

    def to_exception(self) -> StoreError:
        error_cls = {
            "remote_rejected": RemoteRejectedError,
            "transport_failure": TransportFailureError,
            "malformed_response": MalformedResponseError,
        }[self.kind]
        parts = [self.message]
        if self.error_code:
            parts.append(f"code={self.error_code}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        if self.query:
            parts.append(f"query={self.query!r}")
        return error_cls(" | ".join(parts), failure=self)


class QueryResult(BaseModel):
    """
    One page of a SimpleDB select, or the failure that replaced it.

    ``next_token`` of None means the query has no further pages.
    """

    items: List[Record] = Field(default_factory=list)
    next_token: Optional[str] = None
    failure: Optional[StoreFailure] = None

    model_config = {
        "frozen": True,
    }

    @classmethod
    def failed(cls, failure: StoreFailure) -> "QueryResult":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> "QueryResult":
        """Raise the matching StoreError if the call failed, else return self."""
        if self.failure is not None:
            raise self.failure.to_exception()
        return self

    def count_value(self) -> int:
        """
        Extract the aggregate of a ``SELECT COUNT(*)`` page.

        Raises
        ------
        StoreError
            If the call failed or the page carries no ``Count`` attribute.
        """
        self.raise_for_failure()
        for record in self.items:
            value = record.attributes.get(COUNT_ATTRIBUTE)
            if value is not None:
                try:
                    return int(value)
                except ValueError as exc:
                    raise MalformedResponseError(
                        f"Non-numeric {COUNT_ATTRIBUTE} value {value!r}"
                    ) from exc
        raise MalformedResponseError(f"Count result has no {COUNT_ATTRIBUTE} attribute")


__all__ = [
    "COUNT_ATTRIBUTE",
    "NULL_TOKEN",
    "QueryResult",
    "Record",
    "Split",
    "StoreFailure",
]
