"""
Sequential record reader over one split.

A ``SplitReader`` is built on the worker that was handed a split. On
construction it pulls the split's rows from SimpleDB into memory (splits are
bounded by the split size), then hands them out one at a time through
``next()``. Each reader owns its own ``StoreClient``.

States::

    CREATED -> MATERIALIZING -> ITERATING -> EXHAUSTED
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from sdbsplits.config import StoreConfig
from sdbsplits.domain.models import Record, Split
from sdbsplits.errors import SplitReadError, StoreError
from sdbsplits.infrastructure.store_client import StoreClient
from sdbsplits.utils.logging import get_logger

log = get_logger(__name__)


class ReaderState(str, enum.Enum):
    CREATED = "created"
    MATERIALIZING = "materializing"
    ITERATING = "iterating"
    EXHAUSTED = "exhausted"


@dataclass
class RecordSlot:
    """Reusable output slot filled by ``SplitReader.next``."""

    key: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_record(self) -> Record:
        return Record(key=self.key, attributes=dict(self.attributes))


class SplitReader:
    """
    Materialize a split and iterate over its records.

    Parameters
    ----------
    split : Split
        The row range to read.
    config : StoreConfig
        Job configuration; the where clause must match the one used to plan.
    client : StoreClient | None
        Client to read with. The reader owns it either way and closes it on
        ``close()`` or when construction fails.

    Raises
    ------
    SplitReadError
        If any select call fails while materializing; no reader is returned.
    """

    def __init__(
        self,
        split: Split,
        config: StoreConfig,
        client: Optional[StoreClient] = None,
    ) -> None:
        self.split = split
        self.state = ReaderState.CREATED
        self._cursor = 0
        self._items: List[Record] = []
        self._client = client if client is not None else StoreClient(config)
        self._materialize()

    def _materialize(self) -> None:
        self.state = ReaderState.MATERIALIZING
        expected = self.split.length()
        try:
            self._items = self._client.get_items(
                self._client.where_clause, self.split.continuation_token, expected
            )
        except StoreError as exc:
            self.close()
            raise SplitReadError(f"Could not read split [{self.split}]: {exc}") from exc

        if len(self._items) < expected:
            log.warning(
                "Split declared %d rows but SimpleDB returned %d",
                expected,
                len(self._items),
                extra={"start_row": self.split.start_row, "end_row": self.split.end_row},
            )
        log.debug(
            "Materialized %d record(s) for split %s",
            len(self._items),
            self.split,
        )
        self.state = ReaderState.ITERATING

    @property
    def position(self) -> int:
        """Number of records handed out so far."""
        return self._cursor

    def create_slot(self) -> RecordSlot:
        return RecordSlot()

    def next(self, slot: RecordSlot) -> bool:
        """
        Fill ``slot`` with the next record.

        Returns
        -------
        bool
            True if a record was written, False once the split is exhausted
            (and on every later call).
        """
        if self._cursor < len(self._items):
            record = self._items[self._cursor]
            self._cursor += 1
            slot.key = record.key
            slot.attributes.clear()
            slot.attributes.update(record.attributes)
            log.debug("Sending next record: %s", record.key)
            return True

        self.state = ReaderState.EXHAUSTED
        return False

    def progress(self) -> float:
        """
        Fraction of the split handed out, in ``[0, 1]``.

        Returns 0.0 once the cursor reaches the split length, matching the
        progress values downstream consumers already rely on.
        """
        length = self.split.length()
        if self._cursor == length:
            return 0.0
        return min(1.0, self._cursor / length)

    def close(self) -> None:
        """Release the store client. Safe to call more than once."""
        self._client.close()

    def __iter__(self) -> Iterator[Record]:
        slot = self.create_slot()
        while self.next(slot):
            yield slot.to_record()

    def __enter__(self) -> "SplitReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["ReaderState", "RecordSlot", "SplitReader"]
