"""GitHub data source: async REST client and typed upstream errors."""

from repoflow.github.client import GitHubClient, PullRequestSource
from repoflow.github.errors import (
    UpstreamError,
    UpstreamNotFound,
    UpstreamOther,
    UpstreamRateLimited,
)

__all__ = [
    "GitHubClient",
    "PullRequestSource",
    "UpstreamError",
    "UpstreamNotFound",
    "UpstreamOther",
    "UpstreamRateLimited",
]
