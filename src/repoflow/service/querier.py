"""Read-through accessor: cache first, otherwise fetch, compute and insert."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from repoflow.cache import TTLCacheStore
from repoflow.config.schema import AppConfig
from repoflow.github import PullRequestSource
from repoflow.metrics import calculate_metrics
from repoflow.models import MetricsSnapshot, RepoId

log = structlog.get_logger("querier")


@dataclass(frozen=True)
class QuerySettings:
    """Fetch depth and window sizes used for every computation."""

    pr_fetch_days: int = 90
    max_api_pages: int = 10
    days_to_display: int = 30
    window_size: int = 30

    @classmethod
    def from_config(cls, config: AppConfig) -> QuerySettings:
        return cls(
            pr_fetch_days=config.github.pr_fetch_days,
            max_api_pages=config.github.max_api_pages,
            days_to_display=config.metrics.days_to_display,
            window_size=config.metrics.window_size,
        )


class MetricsQuerier:
    """Entry point for metrics lookups.

    Concurrent misses for the same repository are not collapsed: each one
    queries GitHub and the last insert wins. Snapshots are interchangeable
    values, so this only costs upstream calls.
    """

    def __init__(
        self,
        store: TTLCacheStore,
        source: PullRequestSource,
        settings: QuerySettings | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.settings = settings or QuerySettings()
        self.upstream_calls = 0
        # repo -> number of read-through misses currently fetching it
        self._loading: dict[RepoId, int] = {}

    def is_loading(self, repo_id: RepoId) -> bool:
        """Whether a read-through miss for *repo_id* is fetching right now."""
        return repo_id in self._loading

    async def get(self, repo_id: RepoId) -> MetricsSnapshot:
        """Return metrics for *repo_id*, fetching on a miss.

        Raises:
            UpstreamRateLimited, UpstreamNotFound, UpstreamOther: from the source.
        """
        cached = await self.store.get(repo_id)
        if cached is not None:
            log.debug("cache_hit", repo=str(repo_id))
            return cached

        # Marked before the first await, so a refresh worker woken by an
        # expiry found in store.get() already sees this key as loading.
        self._loading[repo_id] = self._loading.get(repo_id, 0) + 1
        log.debug("cache_miss", repo=str(repo_id))
        try:
            snapshot = await self.compute(repo_id)
            await self.store.insert(repo_id, snapshot)
        finally:
            remaining = self._loading.pop(repo_id) - 1
            if remaining:
                self._loading[repo_id] = remaining
        return snapshot

    async def compute(self, repo_id: RepoId) -> MetricsSnapshot:
        """Fetch PRs and compute a fresh snapshot. Does not touch the cache."""
        self.upstream_calls += 1
        prs = await self.source.fetch_pull_requests(
            repo_id,
            self.settings.pr_fetch_days,
            self.settings.max_api_pages,
        )
        return calculate_metrics(
            prs,
            self.settings.days_to_display,
            self.settings.window_size,
            datetime.now(timezone.utc),
        )
