"""Metrics service: read-through access, expiry refresh and preloading."""

from repoflow.service.preloader import PreloadDispatcher, PreloadReport
from repoflow.service.querier import MetricsQuerier, QuerySettings
from repoflow.service.refresher import RefreshWorker
from repoflow.service.runtime import MetricsService

__all__ = [
    "MetricsQuerier",
    "MetricsService",
    "PreloadDispatcher",
    "PreloadReport",
    "QuerySettings",
    "RefreshWorker",
]
