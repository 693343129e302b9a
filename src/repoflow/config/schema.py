"""Configuration schema: sections of config.yaml as Pydantic models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from repoflow.models import RepoId


def parse_repo_list(value: str) -> list[RepoId]:
    """Parse ``"owner1/repo1,owner2/repo2"``; malformed parts are skipped."""
    repos: list[RepoId] = []
    for part in value.split(","):
        try:
            repos.append(RepoId.parse(part))
        except ValueError:
            continue
    return repos


class GitHubConfig(BaseModel):
    base_url: str = "https://api.github.com"
    token: str | None = None
    timeout_s: float = 15.0
    # How far back to list PRs, and a hard cap on paginated requests per repo.
    pr_fetch_days: int = Field(default=90, ge=1)
    max_api_pages: int = Field(default=10, ge=1)


class MetricsConfig(BaseModel):
    days_to_display: int = Field(default=30, ge=0)
    window_size: int = Field(default=30, ge=0)


class CacheConfig(BaseModel):
    ttl_seconds: int = Field(default=3600, ge=1)
    max_capacity: int = Field(default=1000, ge=1)
    sweep_interval_s: float = Field(default=30.0, gt=0)
    # 0 = unbounded
    expiry_queue_maxsize: int = Field(default=0, ge=0)
    refresh_on_expiry: bool = True


class PreloadConfig(BaseModel):
    repos: list[RepoId] = Field(default_factory=list)
    concurrency_limit: int = Field(default=10, ge=1)
    periodic: bool = True
    interval_s: float | None = Field(default=None, gt=0)

    @field_validator("repos", mode="before")
    @classmethod
    def _split_repo_string(cls, v):
        if isinstance(v, str):
            return parse_repo_list(v)
        if isinstance(v, list):
            return [RepoId.parse(item) if isinstance(item, str) else item for item in v]
        return v


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "json"


class AppConfig(BaseModel):
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    preload: PreloadConfig = Field(default_factory=PreloadConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def preload_interval_s(self) -> float:
        """Periodic preload interval; half the cache TTL unless set."""
        if self.preload.interval_s is not None:
            return self.preload.interval_s
        return max(self.cache.ttl_seconds / 2, 1.0)
