"""Trend analysis over the weekly window.

Compares recent activity against the longer-term average of the window to
decide whether a metric is increasing, decreasing or holding steady.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from buildpulse.models import TrendDirection, TrendStats, TrendStatus, WeekSample

Metric = Literal["commits", "hours"]

RECENT_WEEKS = 2
MEDIUM_WEEKS = 4
LONGER_WEEKS = 12
STABILITY_BAND = 10.0  # percent


def _average(samples: Sequence[WeekSample], metric: Metric) -> float:
    if not samples:
        return 0.0
    return sum(getattr(s, metric) for s in samples) / len(samples)


def _direction(recent: float, longer: float) -> tuple[TrendDirection, float]:
    """Derive direction and percentage change from two averages."""
    if longer == 0:
        if recent > 0:
            return TrendDirection.INCREASING, 100.0
        return TrendDirection.STABLE, 0.0

    change_percentage = (recent - longer) / longer * 100

    if abs(change_percentage) < STABILITY_BAND:
        direction = TrendDirection.STABLE
    elif change_percentage > 0:
        direction = TrendDirection.INCREASING
    else:
        direction = TrendDirection.DECREASING

    return direction, change_percentage


def calculate_trend(series: Sequence[WeekSample], metric: Metric) -> TrendStats:
    """Calculate trend statistics for one metric.

    Args:
        series: Weekly samples in any order.
        metric: Either ``"commits"`` or ``"hours"``.

    Returns:
        Trend statistics; all zero and stable for an empty series.
    """
    if not series:
        return TrendStats()

    newest_first = sorted(series, key=lambda s: s.week_start, reverse=True)

    recent = _average(newest_first[:RECENT_WEEKS], metric)
    medium = _average(newest_first[:MEDIUM_WEEKS], metric)
    longer = _average(newest_first[:LONGER_WEEKS], metric)

    direction, change_percentage = _direction(recent, longer)

    return TrendStats(
        recent=recent,
        medium=medium,
        longer=longer,
        direction=direction,
        change_percentage=change_percentage,
    )


def classify_trend(commit_trend: TrendStats, hours_trend: TrendStats) -> TrendStatus:
    """Combine the two metric directions into an overall trend status."""
    directions = [commit_trend.direction, hours_trend.direction]
    increasing = directions.count(TrendDirection.INCREASING)
    decreasing = directions.count(TrendDirection.DECREASING)

    if increasing > decreasing:
        return TrendStatus.IMPROVING
    if decreasing > increasing:
        return TrendStatus.DECLINING
    return TrendStatus.STABLE
