"""Weekly series alignment."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from buildpulse.models import WeekSample


def empty_series(week_starts: Iterable[str]) -> list[WeekSample]:
    """Create an all-zero series over the given labels."""
    return [WeekSample(week_start=label) for label in week_starts]


def merge_weekly_series(
    commit_series: Sequence[WeekSample],
    hours_series: Sequence[WeekSample],
) -> list[WeekSample]:
    """Merge commit and hours series into one.

    Left join on ``week_start`` anchored on the commit series: its labels
    and order are kept, and a week missing from the hours series gets
    zero hours.

    Args:
        commit_series: Series carrying the commit counts.
        hours_series: Series carrying the tracked hours.

    Returns:
        New merged series.
    """
    hours_by_week = {sample.week_start: sample.hours for sample in hours_series}
    return [
        WeekSample(
            week_start=sample.week_start,
            commits=sample.commits,
            hours=hours_by_week.get(sample.week_start, 0.0),
        )
        for sample in commit_series
    ]


def combine_commit_series(
    series_list: Iterable[Sequence[WeekSample]],
    week_starts: Sequence[str],
) -> list[WeekSample]:
    """Sum commit counts per week across several repositories.

    Weeks outside ``week_starts`` are ignored.
    """
    totals = dict.fromkeys(week_starts, 0)
    for series in series_list:
        for sample in series:
            if sample.week_start in totals:
                totals[sample.week_start] += sample.commits
    return [WeekSample(week_start=label, commits=totals[label]) for label in week_starts]


def current_week(series: Sequence[WeekSample]) -> WeekSample | None:
    """Get the most recent sample of a series."""
    if not series:
        return None
    return max(series, key=lambda s: s.week_start)
