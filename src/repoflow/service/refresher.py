"""Refresh worker: repopulates cache entries whose TTL expired."""

from __future__ import annotations

from repoflow.cache import ExpiryChannel, TTLCacheStore
from repoflow.github import UpstreamError
from repoflow.logging import get_logger
from repoflow.models import RepoId
from repoflow.service.querier import MetricsQuerier


class RefreshWorker:
    """Single consumer of the expiry channel.

    One attempt per expiry: a failed refresh leaves the key absent until the
    next read-through or preload cycle fetches it again. A key that a reader
    is already reloading, or that is live again by the time it is received,
    is skipped rather than fetched twice.
    """

    def __init__(
        self,
        channel: ExpiryChannel,
        store: TTLCacheStore,
        querier: MetricsQuerier,
    ) -> None:
        self._channel = channel
        self._store = store
        self._querier = querier
        self._log = get_logger("refresher", task="refresh_worker")
        self.refreshed = 0
        self.failed = 0
        self.skipped = 0

    async def run(self) -> None:
        """Consume keys until the channel is closed and drained."""
        self._log.info("refresh_worker_started")
        while True:
            key = await self._channel.recv()
            if key is None:
                break
            await self.refresh(key)
        self._log.info(
            "refresh_worker_stopped",
            refreshed=self.refreshed,
            failed=self.failed,
            skipped=self.skipped,
        )

    async def refresh(self, key: RepoId) -> bool:
        """Recompute and re-insert one key. Returns whether it fetched and stored."""
        if self._querier.is_loading(key) or await self._store.contains(key):
            self.skipped += 1
            self._log.debug("refresh_skipped", repo=str(key))
            return False

        try:
            snapshot = await self._querier.compute(key)
        except UpstreamError as e:
            self.failed += 1
            self._log.warning(
                "refresh_failed",
                repo=str(key),
                error_type=type(e).__name__,
                error=str(e),
            )
            return False
        except Exception:
            self.failed += 1
            self._log.exception("refresh_failed", repo=str(key))
            return False

        await self._store.insert(key, snapshot)
        self.refreshed += 1
        self._log.debug("refreshed", repo=str(key))
        return True

    def stats(self) -> dict:
        return {"refreshed": self.refreshed, "failed": self.failed, "skipped": self.skipped}
