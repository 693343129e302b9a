"""Tests for the repoflow.metrics module."""

from __future__ import annotations

import math
import random
from datetime import date, datetime, timedelta, timezone
from fractions import Fraction

import pytest

from repoflow.metrics import calculate_metrics, is_widening, merge_rate, summarize
from repoflow.models import DayPoint, PullRequest, SummaryMetrics

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _pr(
    pr_id: int,
    created: datetime,
    merged: datetime | None = None,
) -> PullRequest:
    return PullRequest(
        id=pr_id,
        created_at=created,
        merged_at=merged,
        state="merged" if merged else "open",
    )


def _at(year: int, month: int, day: int, hour: int = 10) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def _point(day: date, opened: int, merged: int) -> DayPoint:
    return DayPoint(date=day, opened=opened, merged=merged, spread=opened - merged)


# ═══════════════════════════════════════════════════════════════
# Formula tests
# ═══════════════════════════════════════════════════════════════


class TestMergeRate:
    def test_basic(self):
        assert merge_rate(1, 2) == 50

    def test_zero_opened(self):
        assert merge_rate(0, 0) == 0
        assert merge_rate(3, 0) == 0

    def test_rounds_half_up(self):
        # 1/8 = 12.5%
        assert merge_rate(1, 8) == 13
        # 5/8 = 62.5%
        assert merge_rate(5, 8) == 63

    def test_rounds_to_nearest(self):
        assert merge_rate(1, 3) == 33
        assert merge_rate(2, 3) == 67

    def test_all_merged(self):
        assert merge_rate(7, 7) == 100


class TestIsWidening:
    def test_fewer_than_two_points(self):
        assert is_widening([]) is False
        assert is_widening([_point(date(2024, 1, 1), 5, 0)]) is False

    def test_spread_grew(self):
        series = [_point(date(2024, 1, 1), 3, 2), _point(date(2024, 1, 2), 4, 2)]
        assert is_widening(series) is True

    def test_spread_unchanged(self):
        series = [_point(date(2024, 1, 1), 3, 2), _point(date(2024, 1, 2), 4, 3)]
        assert is_widening(series) is False

    def test_spread_narrowed(self):
        series = [_point(date(2024, 1, 1), 4, 1), _point(date(2024, 1, 2), 4, 3)]
        assert is_widening(series) is False


class TestSummarize:
    def test_empty(self):
        assert summarize([]) == SummaryMetrics()

    def test_uses_latest_point(self):
        series = [_point(date(2024, 1, 1), 10, 1), _point(date(2024, 1, 2), 4, 3)]
        s = summarize(series)
        assert s.current_opened == 4
        assert s.current_merged == 3
        assert s.current_spread == 1
        assert s.merge_rate == 75
        assert s.is_widening is False


# ═══════════════════════════════════════════════════════════════
# Engine tests
# ═══════════════════════════════════════════════════════════════


class TestCalculateMetrics:
    def test_single_day_scenario(self):
        prs = [
            _pr(1, _at(2024, 1, 5), _at(2024, 1, 6)),
            _pr(2, _at(2024, 1, 9)),
        ]
        result = calculate_metrics(prs, display_days=0, window_days=30, now=NOW)

        assert len(result.time_series) == 1
        assert result.time_series[0] == DayPoint(
            date=date(2024, 1, 10), opened=2, merged=1, spread=1,
        )
        assert result.summary == SummaryMetrics(
            current_opened=2,
            current_merged=1,
            current_spread=1,
            merge_rate=50,
            is_widening=False,
        )

    def test_empty_records(self):
        result = calculate_metrics([], display_days=1, window_days=30, now=NOW)
        assert len(result.time_series) == 2
        for point in result.time_series:
            assert (point.opened, point.merged, point.spread) == (0, 0, 0)
        assert result.summary.merge_rate == 0
        assert result.summary.is_widening is False

    @pytest.mark.parametrize("display_days", [0, 1, 7, 30, 90])
    @pytest.mark.parametrize("window_days", [0, 1, 14, 30])
    def test_series_length_and_order(self, display_days, window_days):
        prs = [_pr(i, NOW - timedelta(days=i)) for i in range(40)]
        result = calculate_metrics(prs, display_days, window_days, NOW)
        dates = [p.date for p in result.time_series]
        assert len(dates) == display_days + 1
        assert dates == sorted(dates)
        assert dates[-1] == date(2024, 1, 10)
        assert dates[0] == date(2024, 1, 10) - timedelta(days=display_days)

    def test_pure(self):
        prs = [
            _pr(1, _at(2024, 1, 2), _at(2024, 1, 3)),
            _pr(2, _at(2024, 1, 4)),
            _pr(3, _at(2024, 1, 8), _at(2024, 1, 10)),
        ]
        first = calculate_metrics(prs, 5, 7, NOW)
        second = calculate_metrics(prs, 5, 7, NOW)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_rolling_window_drops_old_events(self):
        # Created 2024-01-01: inside the 7-day window ending 01-07, outside
        # the one ending 01-08.
        prs = [_pr(1, _at(2024, 1, 1))]
        result = calculate_metrics(prs, display_days=10, window_days=7, now=NOW)
        by_date = {p.date: p.opened for p in result.time_series}
        assert by_date[date(2023, 12, 31)] == 0
        assert by_date[date(2024, 1, 1)] == 1
        assert by_date[date(2024, 1, 7)] == 1
        assert by_date[date(2024, 1, 8)] == 0

    def test_zero_window_counts_nothing(self):
        prs = [_pr(1, _at(2024, 1, 10))]
        result = calculate_metrics(prs, display_days=2, window_days=0, now=NOW)
        assert all(p.opened == 0 for p in result.time_series)

    def test_ignores_events_outside_span(self):
        prs = [
            _pr(1, _at(2023, 6, 1)),  # long before the span
            _pr(2, _at(2024, 2, 1)),  # after now
            _pr(3, _at(2024, 1, 9)),
        ]
        result = calculate_metrics(prs, display_days=0, window_days=30, now=NOW)
        assert result.summary.current_opened == 1

    def test_merge_counted_on_merge_day(self):
        # Opened before the window, merged inside it: negative spread is valid.
        prs = [_pr(1, _at(2023, 11, 1), _at(2024, 1, 8))]
        result = calculate_metrics(prs, display_days=0, window_days=7, now=NOW)
        assert result.summary.current_opened == 0
        assert result.summary.current_merged == 1
        assert result.summary.current_spread == -1
        assert result.summary.merge_rate == 0

    def test_naive_timestamps_are_utc(self):
        prs = [_pr(1, datetime(2024, 1, 10, 23, 30))]
        result = calculate_metrics(prs, display_days=1, window_days=1, now=NOW)
        assert [p.opened for p in result.time_series] == [0, 1]

    def test_timestamps_bucketed_by_utc_day(self):
        # 01:00 at +05:00 on the 10th is 20:00 UTC on the 9th.
        plus_five = timezone(timedelta(hours=5))
        prs = [_pr(1, datetime(2024, 1, 10, 1, 0, tzinfo=plus_five))]
        result = calculate_metrics(prs, display_days=1, window_days=1, now=NOW)
        assert [p.opened for p in result.time_series] == [1, 0]

    def test_is_widening_from_series(self):
        prs = [_pr(1, _at(2024, 1, 10)), _pr(2, _at(2024, 1, 10, 11))]
        result = calculate_metrics(prs, display_days=1, window_days=30, now=NOW)
        assert result.summary.current_spread == 2
        assert result.summary.is_widening is True

    def test_negative_arguments_rejected(self):
        with pytest.raises(ValueError):
            calculate_metrics([], display_days=-1, window_days=30, now=NOW)
        with pytest.raises(ValueError):
            calculate_metrics([], display_days=1, window_days=-1, now=NOW)

    def test_serialized_contract(self):
        prs = [_pr(1, _at(2024, 1, 5), _at(2024, 1, 6)), _pr(2, _at(2024, 1, 9))]
        data = calculate_metrics(prs, 0, 30, NOW).model_dump(mode="json")
        assert data == {
            "summary": {
                "current_opened": 2,
                "current_merged": 1,
                "current_spread": 1,
                "merge_rate": 50,
                "is_widening": False,
            },
            "time_series": [
                {"date": "2024-01-10", "opened": 2, "merged": 1, "spread": 1},
            ],
        }


# ═══════════════════════════════════════════════════════════════
# Prefix sums vs naive filter-count
# ═══════════════════════════════════════════════════════════════


def _naive_series(prs, display_days, window_days, now):
    """Count events per output day by filtering every record."""
    latest = now.date()
    points = []
    for offset in range(display_days, -1, -1):
        day = latest - timedelta(days=offset)
        low = day - timedelta(days=window_days)
        opened = sum(1 for pr in prs if low < pr.created_at.date() <= day)
        merged = sum(
            1 for pr in prs
            if pr.merged_at is not None and low < pr.merged_at.date() <= day
        )
        points.append((day, opened, merged))
    return points


def _random_prs(rng: random.Random, count: int) -> list[PullRequest]:
    prs = []
    for i in range(count):
        created = NOW - timedelta(
            days=rng.randint(-5, 120), hours=rng.randint(0, 23), minutes=rng.randint(0, 59),
        )
        merged = None
        if rng.random() < 0.6:
            merged = created + timedelta(days=rng.randint(0, 20), hours=rng.randint(0, 23))
        prs.append(_pr(i, created, merged))
    return prs


@pytest.mark.parametrize("seed", range(30))
def test_prefix_sums_match_naive_count(seed):
    rng = random.Random(seed)
    prs = _random_prs(rng, rng.randint(0, 200))
    display_days = rng.randint(0, 60)
    window_days = rng.randint(0, 45)

    result = calculate_metrics(prs, display_days, window_days, NOW)
    expected = _naive_series(prs, display_days, window_days, NOW)

    actual = [(p.date, p.opened, p.merged) for p in result.time_series]
    assert actual == expected
    for point in result.time_series:
        assert point.opened >= 0
        assert point.merged >= 0
        assert point.spread == point.opened - point.merged

    last = result.time_series[-1]
    if last.opened > 0:
        expected_rate = math.floor(Fraction(100 * last.merged, last.opened) + Fraction(1, 2))
        assert result.summary.merge_rate == expected_rate
    else:
        assert result.summary.merge_rate == 0
