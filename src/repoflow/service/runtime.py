"""MetricsService: owns the cache and its background tasks for the process lifetime."""

from __future__ import annotations

import asyncio

from repoflow.cache import ExpiryChannel, TTLCacheStore
from repoflow.config.schema import AppConfig
from repoflow.github import GitHubClient, PullRequestSource
from repoflow.logging import get_logger
from repoflow.models import MetricsSnapshot, RepoId
from repoflow.service.preloader import PreloadDispatcher
from repoflow.service.querier import MetricsQuerier, QuerySettings
from repoflow.service.refresher import RefreshWorker


class MetricsService:
    """Wires store, channel, querier, refresh worker and preloader together.

    One instance per process, handed to request handlers by reference.
    Background tasks:

    - cache sweeper: expires entries on a timer, feeding the expiry channel
    - refresh worker: re-fetches expired keys
    - startup preload, then periodic preload at ``preload_interval_s``
    """

    def __init__(
        self,
        config: AppConfig,
        source: PullRequestSource | None = None,
    ) -> None:
        self.config = config
        self._owns_source = source is None
        if source is None:
            source = GitHubClient(
                token=config.github.token,
                base_url=config.github.base_url,
                timeout_s=config.github.timeout_s,
            )
        self.source = source

        self.channel: ExpiryChannel | None = None
        if config.cache.refresh_on_expiry:
            self.channel = ExpiryChannel(maxsize=config.cache.expiry_queue_maxsize)

        self.store = TTLCacheStore(
            max_capacity=config.cache.max_capacity,
            ttl_seconds=config.cache.ttl_seconds,
            expiry_channel=self.channel,
        )
        self.querier = MetricsQuerier(
            self.store, self.source, QuerySettings.from_config(config),
        )
        self.refresher: RefreshWorker | None = None
        if self.channel is not None:
            self.refresher = RefreshWorker(self.channel, self.store, self.querier)
        self.preloader = PreloadDispatcher(
            config.preload.repos,
            self.store,
            self.querier,
            concurrency_limit=config.preload.concurrency_limit,
        )

        self._log = get_logger("metrics_service")
        self._tasks: dict[str, asyncio.Task] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ── Public API ────────────────────────────────────────────

    async def get(self, repo_id: RepoId) -> MetricsSnapshot:
        return await self.querier.get(repo_id)

    def stats(self) -> dict:
        stats = self.store.stats()
        stats["upstream_calls"] = self.querier.upstream_calls
        stats["refresh"] = self.refresher.stats() if self.refresher else None
        stats["preload"] = self.preloader.stats()
        return stats

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Start background tasks; returns without waiting for preload."""
        if self._running:
            return
        self._running = True

        if isinstance(self.source, GitHubClient) and not self.source.authenticated:
            self._log.warning("github_token_missing", detail="rate limits will be strict")

        self._spawn("sweeper", self.store.run_sweeper(self.config.cache.sweep_interval_s))
        if self.refresher is not None:
            self._spawn("refresher", self.refresher.run())
        if self.preloader.targets:
            self._spawn("preload", self.preloader.preload_once(skip_cached=True))
            if self.config.preload.periodic:
                self._spawn(
                    "preload_periodic",
                    self.preloader.run_periodic(self.config.preload_interval_s),
                )

        self._log.info(
            "metrics_service_started",
            ttl_seconds=self.config.cache.ttl_seconds,
            max_capacity=self.config.cache.max_capacity,
            popular_repos=[str(r) for r in self.preloader.targets],
        )

    async def stop(self, grace_s: float = 5.0) -> None:
        """Close the expiry channel, let the worker drain briefly, cancel the rest."""
        if not self._running:
            return
        self._running = False

        if self.channel is not None:
            self.channel.close()
        refresher = self._tasks.get("refresher")
        if refresher is not None and grace_s > 0:
            await asyncio.wait({refresher}, timeout=grace_s)

        for task in self._tasks.values():
            task.cancel()
        for name, task in self._tasks.items():
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                self._log.exception("background_task_failed", task=name)
        self._tasks.clear()

        if self._owns_source and isinstance(self.source, GitHubClient):
            await self.source.close()
        self._log.info("metrics_service_stopped")

    def _spawn(self, name: str, coro) -> None:
        self._tasks[name] = asyncio.create_task(coro, name=name)
