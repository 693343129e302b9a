"""Upstream failure taxonomy.

The client classifies every failure into one of three subclasses from the
HTTP status and headers, so callers branch on type, never on message text.
"""

from __future__ import annotations

from repoflow.models import RepoId


class UpstreamError(Exception):
    """Base class for failures fetching data from GitHub."""

    def __init__(
        self,
        message: str,
        repo_id: RepoId | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.repo_id = repo_id
        self.status_code = status_code


class UpstreamRateLimited(UpstreamError):
    """GitHub refused the request because a rate limit was exhausted."""


class UpstreamNotFound(UpstreamError):
    """The repository does not exist or is not visible with our credentials."""


class UpstreamOther(UpstreamError):
    """Transport errors, unexpected statuses and malformed payloads."""


def classify_status(
    status_code: int,
    headers: dict[str, str] | None = None,
) -> type[UpstreamError]:
    """Map a non-2xx response to its error class."""
    headers = {k.lower(): v for k, v in (headers or {}).items()}
    if status_code == 429:
        return UpstreamRateLimited
    if status_code == 403 and (
        headers.get("x-ratelimit-remaining") == "0" or "retry-after" in headers
    ):
        return UpstreamRateLimited
    if status_code == 404:
        return UpstreamNotFound
    return UpstreamOther
