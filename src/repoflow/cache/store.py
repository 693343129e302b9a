"""
TTL cache store for metrics snapshots.

- Per-entry TTL: ``expires_at = inserted_at + ttl`` on every insert
- LRU eviction once ``max_capacity`` is exceeded
- Expired entries (found on read or by :meth:`TTLCacheStore.sweep`) are
  removed and their key is sent on the expiry channel so a refresh worker
  can repopulate them. Capacity evictions are silent.

An expiry found by :meth:`TTLCacheStore.get` is still sent: the caller is
about to reload the key itself, and the refresh worker skips keys that a
read-through is loading, so the notification costs no extra fetch.

A single asyncio.Lock guards the entries; notifications are sent after the
lock is released.
"""
from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass

import structlog

from repoflow.cache.channel import ChannelClosed, ChannelFull, ExpiryChannel
from repoflow.models import MetricsSnapshot, RepoId

log = structlog.get_logger("cache")


@dataclass(frozen=True)
class CacheEntry:
    value: MetricsSnapshot
    expires_at: float  # time.monotonic()


class TTLCacheStore:
    """Bounded, per-entry-TTL store keyed by :class:`RepoId`."""

    def __init__(
        self,
        max_capacity: int,
        ttl_seconds: float,
        expiry_channel: ExpiryChannel | None = None,
    ) -> None:
        if max_capacity < 1:
            raise ValueError("max_capacity must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_capacity = max_capacity
        self.ttl = ttl_seconds
        self._channel = expiry_channel
        self._entries: OrderedDict[RepoId, CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._evictions = 0
        self._dropped = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: RepoId) -> MetricsSnapshot | None:
        """Return the cached snapshot, or ``None`` if absent or expired."""
        expired = False
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= time.monotonic():
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                expired = True
            else:
                self._entries.move_to_end(key)
                self._hits += 1
                return entry.value
        if expired:
            self._notify([key])
        return None

    async def insert(self, key: RepoId, value: MetricsSnapshot) -> CacheEntry:
        """Store *value* with a fresh TTL, replacing any existing entry."""
        async with self._lock:
            entry = CacheEntry(value=value, expires_at=time.monotonic() + self.ttl)
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                log.debug("cache_evicted", repo=str(evicted))
            return entry

    async def contains(self, key: RepoId) -> bool:
        """Whether a live entry exists; does not touch recency or counters."""
        async with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.expires_at > time.monotonic()

    async def invalidate(self, key: RepoId) -> None:
        """Remove a single key without notifying (no-op if absent)."""
        async with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        """Drop all entries and reset counters."""
        async with self._lock:
            self._entries.clear()
            self._hits = self._misses = self._evictions = 0
            self._expirations = self._dropped = 0

    async def sweep(self) -> int:
        """Remove every expired entry and notify for each. Returns the count."""
        async with self._lock:
            now = time.monotonic()
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)
        if expired:
            log.debug("cache_swept", expired=len(expired))
            self._notify(expired)
        return len(expired)

    async def run_sweeper(self, interval_s: float) -> None:
        """Sweep forever every *interval_s* seconds."""
        while True:
            await asyncio.sleep(interval_s)
            try:
                await self.sweep()
            except Exception:
                log.exception("cache_sweep_failed")

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "max_capacity": self.max_capacity,
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
            "expirations": self._expirations,
            "evictions": self._evictions,
            "dropped_notifications": self._dropped,
            "pending_refreshes": self._channel.pending() if self._channel else 0,
        }

    def _notify(self, keys: list[RepoId]) -> None:
        if self._channel is None:
            return
        for key in keys:
            try:
                self._channel.send(key)
            except (ChannelFull, ChannelClosed) as e:
                self._dropped += 1
                log.warning("expiry_notification_dropped", repo=str(key), reason=str(e))
