"""Per-sender dispatch bookkeeping (core domain).

State lives in memory only and is reset on restart.
"""

from __future__ import annotations

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set


class DispatchRecord:
    """Remembers which senders already received an inquiry in this run.

    Callers hold ``claim(sender_id)`` across the check, the send and the
    ``mark_dispatched`` call, so two concurrent events for one sender cannot
    both see "not yet dispatched".
    """

    def __init__(self) -> None:
        self._dispatched: Set[int] = set()
        # A lock only lives while some event holds or waits on it.
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, sender_id: int) -> asyncio.Lock:
        lock = self._locks.get(sender_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[sender_id] = lock
        return lock

    @asynccontextmanager
    async def claim(self, sender_id: int) -> AsyncIterator[None]:
        # The local reference keeps the weakly held lock alive for the whole claim.
        lock = self._lock_for(sender_id)
        async with lock:
            yield

    def is_dispatched(self, sender_id: int) -> bool:
        return sender_id in self._dispatched

    def mark_dispatched(self, sender_id: int) -> None:
        self._dispatched.add(sender_id)

    def __len__(self) -> int:
        return len(self._dispatched)
