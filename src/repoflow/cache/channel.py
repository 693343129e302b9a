"""Expiry notification channel between the cache store and the refresh worker."""

from __future__ import annotations

import asyncio

from repoflow.models import RepoId

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised by :meth:`ExpiryChannel.send` after the channel was closed."""


class ChannelFull(Exception):
    """Raised by :meth:`ExpiryChannel.send` when a bounded channel is at capacity."""


class ExpiryChannel:
    """FIFO of expired cache keys.

    ``maxsize=0`` means unbounded. The bound is enforced here rather than on
    the underlying queue so that :meth:`close` can always enqueue its marker.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.maxsize = maxsize
        self._queue: asyncio.Queue = asyncio.Queue()
        self._pending = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Keys sent but not yet received."""
        return self._pending

    def send(self, key: RepoId) -> None:
        """Enqueue *key* without waiting."""
        if self._closed:
            raise ChannelClosed(f"channel closed, cannot send {key}")
        if self.maxsize > 0 and self._pending >= self.maxsize:
            raise ChannelFull(f"channel full ({self.maxsize}), cannot send {key}")
        self._queue.put_nowait(key)
        self._pending += 1

    async def recv(self) -> RepoId | None:
        """Wait for the next key; ``None`` once closed and drained."""
        if self._closed and self._pending == 0:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other receiver.
            self._queue.put_nowait(_CLOSED)
            return None
        self._pending -= 1
        return item

    def close(self) -> None:
        """Stop accepting keys. Keys already sent are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
