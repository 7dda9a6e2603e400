"""
In-process keyed locks.

Serializes reset operations on the same email (or token) inside one worker.
Row locks taken by the repositories cover concurrent workers.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict

logger = logging.getLogger(__name__)


class KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or waits for it"""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._release_waiter(key)
            logger.error(f"Timed out waiting for lock {key!r}")
            raise
        try:
            yield
        finally:
            lock.release()
            self._release_waiter(key)

    def _release_waiter(self, key: str) -> None:
        self._waiters[key] -= 1
        if self._waiters[key] == 0:
            del self._waiters[key]
            del self._locks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._locks


reset_locks = KeyedLock()
