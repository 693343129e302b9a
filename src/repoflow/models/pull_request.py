"""Pull request record as consumed by the metrics engine."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

PRState = Literal["open", "closed", "merged", "unknown"]


class PullRequest(BaseModel):
    """A simplified pull request: only the fields flow metrics need."""

    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime
    merged_at: datetime | None = None
    state: PRState = "unknown"
