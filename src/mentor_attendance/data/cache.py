from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Hashable, Optional

from mentor_attendance.data.store import RecordStore
from mentor_attendance.models import RosterEntry, SessionRecord

logger = logging.getLogger(__name__)


class CachedRecordStore:
    """Short-lived read cache in front of another record store.

    Only successful reads are cached. Appends go straight through and clear
    everything, and callers that append through a different path must call
    :meth:`invalidate` themselves before reading again.
    """

    def __init__(
        self,
        backend: RecordStore,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def backend(self) -> RecordStore:
        return self._backend

    def invalidate(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if dropped:
            logger.debug("Cleared %d cached store reads", dropped)

    def append_session_record(self, record: SessionRecord) -> None:
        try:
            self._backend.append_session_record(record)
        finally:
            # A failed append may still have reached the sheet.
            self.invalidate()

    def read_all_records(
        self,
        mentor_name: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> list[SessionRecord]:
        key = ("records", mentor_name or "", student_name or "")
        return list(self._cached(key, lambda: self._backend.read_all_records(mentor_name, student_name)))

    def read_roster(self, program_length: int) -> list[RosterEntry]:
        key = ("roster", int(program_length))
        return list(self._cached(key, lambda: self._backend.read_roster(program_length)))

    def _cached(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[0] < self._ttl:
                return entry[1]
            generation = self._generation

        value = loader()

        with self._lock:
            # An invalidate during the load means the value may predate an append.
            if generation == self._generation:
                self._entries[key] = (self._clock(), value)
        return value
