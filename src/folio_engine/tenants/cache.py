"""Time-boxed, process-local tenant cache keyed by slug."""

import threading
import time
from typing import Callable, Optional

from folio_engine.tenants.record import TenantRecord


class TenantCache:
    """Holds (record, expiry) pairs; entries older than `ttl_seconds` are dropped on read."""

    def __init__(
        self,
        ttl_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[TenantRecord, float]] = {}
        self._lock = threading.Lock()

    def get(self, slug: str) -> Optional[TenantRecord]:
        with self._lock:
            entry = self._entries.get(slug)
            if entry is None:
                return None
            record, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[slug]
                return None
            return record

    def put(self, record: TenantRecord) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[record.slug] = (record, self._clock() + self.ttl_seconds)

    def invalidate(self, slug: str) -> None:
        with self._lock:
            self._entries.pop(slug, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
