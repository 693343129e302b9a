"""Pure summary formulas over a computed time series."""

from __future__ import annotations

from typing import Sequence

from repoflow.models import DayPoint, SummaryMetrics


def merge_rate(merged: int, opened: int) -> int:
    """Merged as a percentage of opened, rounded half-up; 0 when nothing opened."""
    if opened <= 0:
        return 0
    # Integer form of floor(merged / opened * 100 + 0.5).
    return (200 * merged + opened) // (2 * opened)


def is_widening(series: Sequence[DayPoint]) -> bool:
    """True iff the newest spread exceeds the one before it."""
    if len(series) < 2:
        return False
    return series[-1].spread > series[-2].spread


def summarize(series: Sequence[DayPoint]) -> SummaryMetrics:
    """Build summary metrics from the newest point of *series*."""
    if not series:
        return SummaryMetrics()
    latest = series[-1]
    return SummaryMetrics(
        current_opened=latest.opened,
        current_merged=latest.merged,
        current_spread=latest.spread,
        merge_rate=merge_rate(latest.merged, latest.opened),
        is_widening=is_widening(series),
    )
