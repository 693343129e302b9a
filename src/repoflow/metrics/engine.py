"""Rolling-window flow metrics over daily prefix sums.

Each PR contributes one "opened" event on its creation day and, if merged,
one "merged" event on its merge day. Events are bucketed per UTC calendar
day across ``[now - display_days - window_days, now]``; the buckets are
turned into prefix sums so every rolling count is a single subtraction.
That makes the whole computation O(days + records) instead of filtering
every record for every output day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

import numpy as np

from repoflow.metrics.formulas import summarize
from repoflow.models import DayPoint, MetricsSnapshot, PullRequest

END_OF_DAY = time(23, 59, 59)


def _utc_day(ts: datetime) -> date:
    """Calendar day of *ts* in UTC; naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(timezone.utc).date()


def _end_of_day(ts: datetime) -> datetime:
    return datetime.combine(_utc_day(ts), END_OF_DAY, tzinfo=timezone.utc)


class PrefixTimeline:
    """Cumulative daily event counts starting at ``start``."""

    def __init__(self, start: date, days: Iterable[date], size: int) -> None:
        self.start = start
        indices = [
            idx for idx in ((d - start).days for d in days) if 0 <= idx < size
        ]
        counts = np.bincount(np.asarray(indices, dtype=np.int64), minlength=size)
        self.prefix = np.cumsum(counts[:size], dtype=np.int64)

    def sum_in_window(self, end: date, window_days: int) -> int:
        """Events in the window ``(end - window_days, end]``, clamped to >= 0."""
        if len(self.prefix) == 0:
            return 0
        end_idx = (end - self.start).days
        if end_idx < 0:
            return 0
        end_idx = min(end_idx, len(self.prefix) - 1)
        start_idx = end_idx - window_days
        start_val = int(self.prefix[start_idx]) if start_idx >= 0 else 0
        return max(int(self.prefix[end_idx]) - start_val, 0)


def calculate_metrics(
    records: Iterable[PullRequest],
    display_days: int,
    window_days: int,
    now: datetime,
) -> MetricsSnapshot:
    """Compute the daily rolling series and summary for a set of PRs.

    Args:
        records: Pull requests, in any order.
        display_days: D; the series covers ``now - D`` .. ``now`` (D+1 points).
        window_days: W; each point counts events in the trailing W days.
        now: Reference instant; the newest point is its UTC calendar day.

    Returns:
        A snapshot with ``display_days + 1`` points ordered oldest to newest.
    """
    if display_days < 0 or window_days < 0:
        raise ValueError("display_days and window_days must be non-negative")

    latest = _utc_day(now)
    start = latest - timedelta(days=display_days + window_days)
    size = (latest - start).days + 1

    records = list(records)
    opened = PrefixTimeline(start, (_utc_day(pr.created_at) for pr in records), size)
    merged = PrefixTimeline(
        start,
        (_utc_day(pr.merged_at) for pr in records if pr.merged_at is not None),
        size,
    )

    series: list[DayPoint] = []
    for offset in range(display_days, -1, -1):
        # Anchor at 23:59:59 so everything on that day falls inside the window.
        day = _end_of_day(now - timedelta(days=offset)).date()
        o = opened.sum_in_window(day, window_days)
        m = merged.sum_in_window(day, window_days)
        series.append(DayPoint(date=day, opened=o, merged=m, spread=o - m))

    return MetricsSnapshot(summary=summarize(series), time_series=tuple(series))
