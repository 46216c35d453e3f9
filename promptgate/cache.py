"""
PromptGate - Result Cache

In-memory, content-addressed memoisation of analysis results.

Keys are SHA-256 digests of the canonical JSON form of ``{input, context}``,
so identical requests always share a key and raw text is never used as a
dictionary key.  Entries expire after a TTL and the store is bounded (least
recently used entries are evicted first).  Concurrent requests for the same
key share a single computation, whether they come from one event loop or
from several threads each running their own loop.

Copyright © 2026 Oracles Technologies LLC
All Rights Reserved
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import hashlib
import inspect
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)


def cache_key(text: str, context: Any = None) -> str:
    """
    Derive the cache key for *text* and a JSON-serialisable *context*.

    Raises ``TypeError``/``ValueError`` when *context* cannot be serialised;
    callers treat that as a cache miss and analyse directly.
    """
    payload = json.dumps(
        {"input": text, "context": context},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    """One memoised result"""
    key: str
    result: Any
    created_at: float
    ttl: Optional[float] = None

    def expired(self, now: float) -> bool:
        return bool(self.ttl) and now - self.created_at >= self.ttl


class ResultCache:
    """
    Thread-safe TTL + LRU result store with single-flight computation.

    Args:
        ttl_seconds:  Entry lifetime; 0 or None keeps entries until evicted.
        max_entries:  Upper bound on stored entries.
        clock:        Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = 300.0,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._in_flight: Dict[str, concurrent.futures.Future] = {}
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._evictions = 0
        self._expirations = 0

    # ------------------------------------------------------------------
    # Plain key/value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[Any]:
        """Return the stored result for *key*, or None on miss/expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.result

    def put(self, key: str, result: Any, ttl: Optional[float] = None) -> None:
        """Store *result* under *key*, evicting the oldest entries if full."""
        entry = CacheEntry(
            key=key,
            result=result,
            created_at=self._clock(),
            ttl=self.ttl_seconds if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Single-flight
    # ------------------------------------------------------------------

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Union[Any, Awaitable[Any]]],
    ) -> Tuple[Any, bool]:
        """
        Return ``(result, from_cache)`` for *key*.

        On a miss the first caller runs *compute* (sync or async) and stores
        its return value; callers arriving while it runs, from this event
        loop or from another thread, wait on the same in-flight future
        instead of computing again.  Exceptions from *compute* reach every
        waiting caller and nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            return cached, True

        with self._lock:
            pending = self._in_flight.get(key)
            if pending is not None:
                self._coalesced += 1
                leader = False
            else:
                pending = concurrent.futures.Future()
                self._in_flight[key] = pending
                leader = True

        if not leader:
            # shield so a cancelled waiter never cancels the shared future
            return await asyncio.shield(asyncio.wrap_future(pending)), True

        try:
            result = await self._compute(compute)
        except BaseException as exc:
            self._release(key, pending)
            if isinstance(exc, Exception):
                pending.set_exception(exc)
            else:
                pending.cancel()
            raise

        self.put(key, result)
        self._release(key, pending)
        pending.set_result(result)
        return result, False

    @staticmethod
    async def _compute(compute: Callable[[], Union[Any, Awaitable[Any]]]) -> Any:
        result = compute()
        if inspect.isawaitable(result):
            result = await result
        return result

    def _release(self, key: str, pending: concurrent.futures.Future) -> None:
        with self._lock:
            if self._in_flight.get(key) is pending:
                del self._in_flight[key]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "coalesced": self._coalesced,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "in_flight": len(self._in_flight),
            }
