"""Preload dispatcher: keeps a fixed set of repositories warm."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from repoflow.cache import TTLCacheStore
from repoflow.github import UpstreamError
from repoflow.logging import get_logger
from repoflow.models import RepoId
from repoflow.service.querier import MetricsQuerier


@dataclass
class PreloadReport:
    """Outcome of one preload pass."""

    loaded: list[RepoId] = field(default_factory=list)
    skipped: list[RepoId] = field(default_factory=list)
    failed: list[RepoId] = field(default_factory=list)


class PreloadDispatcher:
    """Fetch+compute+insert for each target, at most N in flight."""

    def __init__(
        self,
        targets: list[RepoId],
        store: TTLCacheStore,
        querier: MetricsQuerier,
        concurrency_limit: int = 10,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.targets = list(targets)
        self.concurrency_limit = concurrency_limit
        self._store = store
        self._querier = querier
        self.passes = 0
        self.last_report: PreloadReport | None = None
        self._log = get_logger("preloader", task="preload")

    async def preload_once(self, skip_cached: bool = True) -> PreloadReport:
        """Run one pass over all targets.

        With *skip_cached*, targets already in the cache are left alone. The
        check is not atomic with the later insert; a concurrent refresh of
        the same key just overwrites with an equivalent snapshot.
        """
        report = PreloadReport()
        semaphore = asyncio.Semaphore(self.concurrency_limit)

        self._log.info("preload_started", targets=len(self.targets), skip_cached=skip_cached)

        async def _one(repo_id: RepoId) -> None:
            async with semaphore:
                if skip_cached and await self._store.contains(repo_id):
                    report.skipped.append(repo_id)
                    return
                try:
                    snapshot = await self._querier.compute(repo_id)
                except UpstreamError as e:
                    report.failed.append(repo_id)
                    self._log.warning(
                        "preload_failed",
                        repo=str(repo_id),
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    return
                except Exception:
                    report.failed.append(repo_id)
                    self._log.exception("preload_failed", repo=str(repo_id))
                    return
                await self._store.insert(repo_id, snapshot)
                report.loaded.append(repo_id)
                self._log.info("preloaded", repo=str(repo_id))

        await asyncio.gather(*(_one(r) for r in self.targets))

        self.passes += 1
        self.last_report = report
        self._log.info(
            "preload_finished",
            loaded=len(report.loaded),
            skipped=len(report.skipped),
            failed=len(report.failed),
        )
        return report

    async def run_periodic(self, interval_s: float) -> None:
        """Re-fetch every target every *interval_s* seconds, cached or not."""
        while True:
            await asyncio.sleep(interval_s)
            try:
                await self.preload_once(skip_cached=False)
            except Exception:
                self._log.exception("preload_cycle_error")

    def stats(self) -> dict:
        report = self.last_report
        return {
            "targets": len(self.targets),
            "passes": self.passes,
            "last_loaded": len(report.loaded) if report else 0,
            "last_skipped": len(report.skipped) if report else 0,
            "last_failed": len(report.failed) if report else 0,
        }
