# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""In-process TTL cache with single-flight get-or-create.

Locking:

* one short lock guards the entry dict and the per-key lock registry; it is
  never held while a value is computed;
* synchronous computations take a per-key lock, created on demand and
  dropped once no caller holds or waits on it;
* asynchronous computations run as one task per key and event loop; every
  caller awaits that task through :func:`asyncio.shield`, so a caller that
  gives up never cancels the computation for the others.

A failed computation stores nothing, so the next caller computes again.
``None`` is a valid cached value. A non-positive ttl returns the computed
value without storing it.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Generic, TypeVar

V = TypeVar("V")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at which it expires (``None``: never)."""

    value: V
    expires_at: float | None = None

    def is_live(self, now: float) -> bool:
        return self.expires_at is None or now < self.expires_at


class _KeyLock:
    __slots__ = ("lock", "users", "computed", "value")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0
        # Set by the thread that computed; read by threads queued behind it.
        self.computed = False
        self.value: Any = None


class InMemoryCacheProvider:
    """Thread-safe in-memory :class:`~specquery.cache.ports.outbound.CacheProvider`.

    Args:
        clock: Monotonic clock in seconds; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._key_locks: dict[str, _KeyLock] = {}
        self._pending: dict[tuple[asyncio.AbstractEventLoop, str], asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Plain access
    # ------------------------------------------------------------------

    def add(self, key: str, value: Any) -> None:
        """Store *value* under *key* without expiration, replacing any entry."""
        self._store(key, value, None)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for *key*, or *default*. Never computes."""
        entry = self._lookup(key)
        return default if entry is None else entry.value

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Get-or-create
    # ------------------------------------------------------------------

    def get_or_create(self, key: str, compute: Callable[[], V], ttl: timedelta | None) -> V:
        """Return the live value for *key*, computing and storing it on a miss.

        Threads that queued on *key* while another thread was computing get
        that thread's value, even when a non-positive *ttl* kept it out of
        the cache.
        """
        entry = self._lookup(key)
        if entry is not None:
            logger.debug("Cache hit: %s", key)
            return entry.value

        with self._locked(key) as key_lock:
            if key_lock.computed:
                logger.debug("Sharing value computed while waiting: %s", key)
                return key_lock.value
            entry = self._lookup(key)
            if entry is not None:
                logger.debug("Cache hit after wait: %s", key)
                return entry.value
            logger.debug("Cache miss, computing: %s", key)
            try:
                value = compute()
            except Exception:
                logger.debug("Cache computation failed: %s", key, exc_info=True)
                raise
            self._store(key, value, ttl)
            key_lock.value = value
            key_lock.computed = True
            return value

    async def get_or_create_async(
        self,
        key: str,
        compute: Callable[[], Awaitable[V]],
        ttl: timedelta | None,
    ) -> V:
        """Async :meth:`get_or_create`; concurrent callers share one computation."""
        entry = self._lookup(key)
        if entry is not None:
            logger.debug("Cache hit: %s", key)
            return entry.value

        loop = asyncio.get_running_loop()
        slot = (loop, key)
        task = self._pending.get(slot)
        if task is None:
            logger.debug("Cache miss, computing: %s", key)
            task = loop.create_task(self._compute_async(slot, compute, ttl))
            task.add_done_callback(_consume_exception)
            self._pending[slot] = task
        else:
            logger.debug("Joining in-flight computation: %s", key)
        return await asyncio.shield(task)

    async def _compute_async(
        self,
        slot: tuple[asyncio.AbstractEventLoop, str],
        compute: Callable[[], Awaitable[V]],
        ttl: timedelta | None,
    ) -> V:
        key = slot[1]
        try:
            entry = self._lookup(key)
            if entry is not None:
                return entry.value
            value = await compute()
            self._store(key, value, ttl)
            return value
        except Exception:
            logger.debug("Cache computation failed: %s", key, exc_info=True)
            raise
        finally:
            self._pending.pop(slot, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> CacheEntry[Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_live(self._clock()):
                return entry
            del self._entries[key]
            return None

    def _store(self, key: str, value: Any, ttl: timedelta | None) -> None:
        if ttl is not None and ttl <= timedelta(0):
            return
        expires_at = None if ttl is None else self._clock() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = CacheEntry(value, expires_at)

    @contextmanager
    def _locked(self, key: str) -> Iterator[_KeyLock]:
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield key_lock
        finally:
            with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[key]


def _consume_exception(task: asyncio.Task[Any]) -> None:
    # Marks the exception retrieved when no caller is left waiting.
    if not task.cancelled():
        task.exception()
