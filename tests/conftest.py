"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from repoflow.models import PullRequest, RepoId


class FakeSource:
    """In-memory PullRequestSource.

    ``prs`` maps repo -> records to return, ``errors`` maps repo -> exception
    to raise. Records every call and the peak number of concurrent fetches.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.prs: dict[RepoId, list[PullRequest]] = {}
        self.errors: dict[RepoId, Exception] = {}
        self.calls: list[tuple[RepoId, int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_pull_requests(
        self,
        repo_id: RepoId,
        max_age_days: int,
        max_pages: int,
    ) -> list[PullRequest]:
        self.calls.append((repo_id, max_age_days, max_pages))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if repo_id in self.errors:
                raise self.errors[repo_id]
            return list(self.prs.get(repo_id, []))
        finally:
            self.in_flight -= 1

    def repos_called(self) -> list[RepoId]:
        return [call[0] for call in self.calls]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def react():
    return RepoId(owner="facebook", repo="react")


@pytest.fixture
def rust():
    return RepoId(owner="rust-lang", repo="rust")


@pytest.fixture
def slow_source():
    """A source whose fetches take long enough to overlap."""
    return FakeSource(delay=0.02)
