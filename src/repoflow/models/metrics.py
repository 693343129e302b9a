"""Flow metrics response models."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict


class DayPoint(BaseModel):
    """Rolling-window counts as of the end of one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    opened: int = 0
    merged: int = 0
    spread: int = 0


class SummaryMetrics(BaseModel):
    """Headline numbers taken from the newest point of the series."""

    model_config = ConfigDict(frozen=True)

    current_opened: int = 0
    current_merged: int = 0
    current_spread: int = 0
    merge_rate: int = 0  # percentage 0-100
    is_widening: bool = False


class MetricsSnapshot(BaseModel):
    """Everything served for one repository: summary plus daily series."""

    model_config = ConfigDict(frozen=True)

    summary: SummaryMetrics
    time_series: tuple[DayPoint, ...] = ()
