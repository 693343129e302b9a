"""Repository identifier: the cache key for computed metrics."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RepoId(BaseModel):
    """A GitHub repository, e.g. ``facebook/react``.

    Frozen so it hashes by value and can key the metrics cache.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def parse(cls, value: str) -> RepoId:
        """Build from ``"owner/repo"``; raises ValueError on anything else."""
        parts = [p.strip() for p in value.strip().split("/")]
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"expected 'owner/repo', got {value!r}")
        return cls(owner=parts[0], repo=parts[1])
