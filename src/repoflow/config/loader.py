"""Config loader: YAML file first, then REPOFLOW_* and GITHUB_TOKEN env vars."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from repoflow.config.schema import AppConfig

# env var -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "REPOFLOW_GITHUB_TOKEN": ("github", "token"),
    "REPOFLOW_PR_FETCH_DAYS": ("github", "pr_fetch_days"),
    "REPOFLOW_MAX_GITHUB_API_PAGES": ("github", "max_api_pages"),
    "REPOFLOW_METRICS_DAYS_TO_DISPLAY": ("metrics", "days_to_display"),
    "REPOFLOW_METRICS_WINDOW_SIZE": ("metrics", "window_size"),
    "REPOFLOW_CACHE_TTL_SECONDS": ("cache", "ttl_seconds"),
    "REPOFLOW_CACHE_MAX_CAPACITY": ("cache", "max_capacity"),
    "REPOFLOW_POPULAR_REPOS": ("preload", "repos"),
    "REPOFLOW_POPULAR_REPOS_CONCURRENCY_LIMIT": ("preload", "concurrency_limit"),
    "REPOFLOW_PORT": ("server", "port"),
    "REPOFLOW_LOG_LEVEL": ("logging", "level"),
    "REPOFLOW_LOG_FORMAT": ("logging", "format"),
}

# Set-but-empty clears these (an empty preload list); other empty vars are ignored.
CLEARABLE = frozenset({"REPOFLOW_POPULAR_REPOS"})


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, starts from defaults.
    Every variable in ``ENV_OVERRIDES`` wins over the file. ``GITHUB_TOKEN``
    is honoured as a fallback when no token is configured otherwise.
    Values are strings here; pydantic coerces them on validation.
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    for var, (section, field) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value is None:
            continue
        if not value and var not in CLEARABLE:
            continue
        data.setdefault(section, {})[field] = value

    token = os.environ.get("GITHUB_TOKEN")
    if token and not data.get("github", {}).get("token"):
        data.setdefault("github", {})["token"] = token

    return AppConfig.model_validate(data)
