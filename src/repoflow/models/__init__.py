"""Pydantic domain models."""

from repoflow.models.metrics import DayPoint, MetricsSnapshot, SummaryMetrics
from repoflow.models.pull_request import PRState, PullRequest
from repoflow.models.repo import RepoId

__all__ = [
    "DayPoint",
    "MetricsSnapshot",
    "PRState",
    "PullRequest",
    "RepoId",
    "SummaryMetrics",
]
