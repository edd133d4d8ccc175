"""
Full-snapshot replace of the streams collection.

The snapshot is applied as clear-then-reinsert with a continue-on-error item
loop: an invalid or unwritable candidate is skipped and only lowers the
accepted count. The sequence is not atomic across the batch; a failure
after the clear can leave the collection empty or partially populated.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import LiveVipError, StorageUnavailable, ValidationError
from .models import StreamRecord
from .store import RecordStore
from .validation import json_type_name, normalize

logger = logging.getLogger(__name__)

Log = Union[logging.Logger, logging.LoggerAdapter]


@dataclass(frozen=True)
class ItemOutcome:
    index: int
    record: StreamRecord | None = None
    error: LiveVipError | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class SyncResult:
    accepted_count: int
    total_received: int
    outcomes: tuple[ItemOutcome, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "count": self.accepted_count,
            "total_received": self.total_received,
        }


class SnapshotSynchronizer:
    """Replaces the whole collection with a client-submitted snapshot."""

    def __init__(self, store: RecordStore):
        self._store = store
        # Serializes concurrent snapshots within this process only.
        self._lock = threading.Lock()

    def synchronize(self, snapshot: Any, log: Log | None = None) -> SyncResult:
        log = log or logger
        if not isinstance(snapshot, (list, tuple)):
            received = json_type_name(snapshot)
            log.warning("Rejected snapshot: expected array, received %s", received)
            raise ValidationError("Invalid data - expected array", received=received)

        with self._lock:
            log.info("Replacing streams with snapshot of %d item(s)", len(snapshot))
            try:
                self._store.ensure_schema()
            except StorageUnavailable:
                log.exception("Snapshot aborted: schema check failed")
                raise

            try:
                removed = self._store.clear()
            except StorageUnavailable:
                log.exception("Snapshot aborted: clearing streams failed")
                raise
            log.info("Cleared %d existing stream(s)", removed)

            outcomes = [self._apply(index, item, log) for index, item in enumerate(snapshot)]

        accepted = sum(1 for outcome in outcomes if outcome.ok)
        log.info("Saved %d of %d stream(s)", accepted, len(snapshot))
        return SyncResult(
            accepted_count=accepted,
            total_received=len(snapshot),
            outcomes=tuple(outcomes),
        )

    def _apply(self, index: int, item: Any, log: Log) -> ItemOutcome:
        try:
            record = self._store.insert(normalize(item))
        except ValidationError as e:
            log.warning("Skipping stream #%d: %s", index, e)
            return ItemOutcome(index, error=e)
        except StorageUnavailable as e:
            log.error("Skipping stream #%d: %s", index, e)
            return ItemOutcome(index, error=e)
        log.debug("Inserted stream %s: %s by %s", record.id, record.title, record.streamer)
        return ItemOutcome(index, record=record)
