"""
In-memory record store the workflows mutate.

Seeded once from the data access layer. Workflow actions follow one
pattern: take the per-record lock, re-read current state, validate, then
``commit`` every touched record in a single step. A failed check leaves
nothing half-written, and two callers racing on the same record are
serialized by the lock.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import Any

from pydantic import BaseModel

from hr_admin.data_access import RECORD_TYPES, DataAccessLayer
from hr_admin.errors import NotFoundError

logger = logging.getLogger(__name__)

# Display names used in NotFoundError messages
KIND_LABELS = {
    "employees": "Employee",
    "leaves": "Leave",
    "time_logs": "Time log",
    "payroll": "Payroll",
    "candidates": "Candidate",
    "performance": "Performance review",
    "trainings": "Training",
    "benefits": "Benefits",
    "assets": "Asset",
    "asset_assignments": "Asset assignment",
    "maintenance_logs": "Maintenance log",
}


class RecordStore:
    """Ordered collections keyed by record id, with per-record locks."""

    def __init__(self, collections: dict[str, list[BaseModel]] | None = None):
        self._guard = threading.RLock()
        self._locks: dict[tuple[str, int], threading.Lock] = {}
        self._issued: dict[str, int] = {}
        self._records: dict[str, dict[int, BaseModel]] = {kind: {} for kind in RECORD_TYPES}

        for kind, records in (collections or {}).items():
            self._records[kind] = {record.id: record for record in records}

    @classmethod
    def from_data_access(cls, data_access: DataAccessLayer) -> "RecordStore":
        """Load every collection through the fallback chain."""
        store = cls({kind: data_access.list_records(kind) for kind in RECORD_TYPES})
        logger.info(
            "Record store seeded: %s",
            ", ".join(f"{kind}={len(store.all(kind))}" for kind in RECORD_TYPES),
        )
        return store

    def all(self, kind: str) -> list[Any]:
        """Current collection in insertion order."""
        with self._guard:
            return list(self._records[kind].values())

    def snapshot(self) -> dict[str, list[Any]]:
        """Consistent copy of every collection for read-only aggregation."""
        with self._guard:
            return {kind: list(records.values()) for kind, records in self._records.items()}

    def get(self, kind: str, record_id: int) -> Any | None:
        with self._guard:
            return self._records[kind].get(record_id)

    def require(self, kind: str, record_id: int) -> Any:
        """Like ``get`` but raises NotFoundError for an unknown id."""
        record = self.get(kind, record_id)
        if record is None:
            raise NotFoundError(KIND_LABELS[kind], record_id)
        return record

    def next_id(self, kind: str) -> int:
        """Allocate a fresh id; never handed out twice, even if unused."""
        with self._guard:
            new_id = max(max(self._records[kind], default=0), self._issued.get(kind, 0)) + 1
            self._issued[kind] = new_id
            return new_id

    @contextmanager
    def locked(self, *keys: tuple[str, int]) -> Iterator[None]:
        """
        Hold the locks of the given ``(kind, id)`` records.

        Locks are always acquired in sorted key order so two actions
        touching the same records cannot deadlock.
        """
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._lock_for(key))
            yield

    def _lock_for(self, key: tuple[str, int]) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def commit(self, *changes: tuple[str, BaseModel]) -> None:
        """Insert or replace several records as one atomic step."""
        with self._guard:
            for kind, record in changes:
                self._records[kind][record.id] = record

