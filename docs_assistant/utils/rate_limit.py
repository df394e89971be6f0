"""
Rate Governor

In-process, per-identity fixed-window admission control for the chat
endpoint. State lives in a single lock-guarded dict, so it is per worker
process and lost on restart.

Fixed windows admit up to 2x the limit across a window boundary. Records are
never reaped on the request path; stale ones are overwritten on the next
request from the same identity, or dropped by sweep().
"""

import logging
import threading
import time
from typing import Callable, Dict

from docs_assistant.models import RateLimitResult, RateRecord

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class RateGovernor:
    """
    Fixed-window request counter keyed by client identity.

    check() is atomic: the read-modify-write for a record happens under one
    lock, so concurrent requests can never both take the last slot.
    """

    def __init__(self, limit: int = 10, window_ms: int = 60000, clock: Callable[[], int] = epoch_ms):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_ms < 1:
            raise ValueError("window_ms must be positive")

        self.limit = limit
        self.window_ms = window_ms
        self._clock = clock
        self._records: Dict[str, RateRecord] = {}
        self._lock = threading.Lock()

    def check(self, identity: str) -> RateLimitResult:
        """Count a request from `identity` and decide whether to admit it."""
        with self._lock:
            now = self._clock()
            record = self._records.get(identity)

            if record is None or now - record.window_start > self.window_ms:
                self._records[identity] = RateRecord(identity=identity, count=1, window_start=now)
                return RateLimitResult(allowed=True, remaining=self.limit - 1)

            if record.count >= self.limit:
                reset_time_ms = record.window_start + self.window_ms - now
                return RateLimitResult(allowed=False, remaining=0, reset_time_ms=reset_time_ms)

            record.count += 1
            return RateLimitResult(allowed=True, remaining=self.limit - record.count)

    def sweep(self) -> int:
        """Drop records whose window has expired. Returns the number removed."""
        with self._lock:
            now = self._clock()
            stale = [identity for identity, record in self._records.items() if now - record.window_start > self.window_ms]
            for identity in stale:
                del self._records[identity]

        if stale:
            logger.debug(f"[RATE LIMIT] Swept {len(stale)} stale records")
        return len(stale)

    def tracked_identities(self) -> int:
        with self._lock:
            return len(self._records)
