"""GitHub REST client: paginated pull request listing.

Lists ``/repos/{owner}/{repo}/pulls`` newest first, following the ``Link``
header, and stops as soon as a page reaches past the age cutoff or the page
budget is spent. Errors are raised as :mod:`repoflow.github.errors` types.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import httpx
import structlog

from repoflow.github.errors import UpstreamOther, classify_status
from repoflow.models import PRState, PullRequest, RepoId

log = structlog.get_logger("github")

PER_PAGE = 100


class PullRequestSource(Protocol):
    """Anything that can list a repository's recent pull requests."""

    async def fetch_pull_requests(
        self,
        repo_id: RepoId,
        max_age_days: int,
        max_pages: int,
    ) -> list[PullRequest]: ...


def _parse_ts(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


class GitHubClient:
    """Async client for the GitHub REST API."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "https://api.github.com",
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._token = token
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "repoflow",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._http = httpx.AsyncClient(
                timeout=self.timeout_s,
                headers=headers,
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    # --- REST ---

    async def _get_page(
        self,
        url: str,
        repo_id: RepoId,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        http = await self._get_http()
        try:
            resp = await http.get(url, params=params)
        except httpx.HTTPError as e:
            raise UpstreamOther(f"request to GitHub failed: {e}", repo_id=repo_id) from e
        if not resp.is_success:
            error_cls = classify_status(resp.status_code, dict(resp.headers))
            raise error_cls(
                f"GitHub returned HTTP {resp.status_code} for {repo_id}",
                repo_id=repo_id,
                status_code=resp.status_code,
            )
        return resp

    async def fetch_pull_requests(
        self,
        repo_id: RepoId,
        max_age_days: int,
        max_pages: int,
    ) -> list[PullRequest]:
        """List PRs created within *max_age_days*, newest first.

        Reads at most *max_pages* pages of 100. Stops early once the oldest
        PR collected so far predates the cutoff.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)
        url: str | None = f"{self.base_url}/repos/{repo_id.owner}/{repo_id.repo}/pulls"
        params: dict[str, Any] | None = {
            "state": "all",
            "sort": "created",
            "direction": "desc",
            "per_page": PER_PAGE,
        }
        prs: list[PullRequest] = []
        pages = 0

        while url is not None and pages < max_pages:
            resp = await self._get_page(url, repo_id, params)
            pages += 1
            try:
                body = resp.json()
            except ValueError as e:
                raise UpstreamOther(
                    f"malformed JSON from GitHub for {repo_id}", repo_id=repo_id,
                ) from e
            if not isinstance(body, list):
                raise UpstreamOther(
                    f"unexpected payload from GitHub for {repo_id}", repo_id=repo_id,
                )

            prs.extend(self.parse_pull_requests(body))

            if prs and prs[-1].created_at < cutoff:
                break

            # The next link already carries the query string.
            url = resp.links.get("next", {}).get("url")
            params = None

        kept = [pr for pr in prs if pr.created_at >= cutoff]
        log.debug(
            "pull_requests_fetched",
            repo=str(repo_id),
            pages=pages,
            fetched=len(prs),
            kept=len(kept),
        )
        return kept

    @staticmethod
    def parse_pull_requests(items: list[dict]) -> list[PullRequest]:
        """Convert raw API items, skipping any without ``created_at``."""
        prs: list[PullRequest] = []
        for item in items:
            created_at = _parse_ts(item.get("created_at"))
            if created_at is None:
                continue
            merged_at = _parse_ts(item.get("merged_at"))
            prs.append(PullRequest(
                id=item.get("id", 0),
                created_at=created_at,
                merged_at=merged_at,
                state=GitHubClient.classify_state(item.get("state"), merged_at),
            ))
        return prs

    @staticmethod
    def classify_state(raw: str | None, merged_at: datetime | None) -> PRState:
        if merged_at is not None:
            return "merged"
        if raw in ("open", "closed"):
            return raw
        return "unknown"
