"""Tests for series alignment."""

from buildpulse.models import WeekSample
from buildpulse.series import (
    combine_commit_series,
    current_week,
    empty_series,
    merge_weekly_series,
)


class TestMergeWeeklySeries:
    """Tests for merge_weekly_series."""

    def test_merge_aligned(self) -> None:
        """Test commits and hours are joined by week."""
        commits = [
            WeekSample(week_start="2024-01-06", commits=3),
            WeekSample(week_start="2023-12-30", commits=1),
        ]
        hours = [
            WeekSample(week_start="2023-12-30", hours=2.5),
            WeekSample(week_start="2024-01-06", hours=4.0),
        ]

        merged = merge_weekly_series(commits, hours)

        assert [s.week_start for s in merged] == ["2024-01-06", "2023-12-30"]
        assert merged[0].commits == 3
        assert merged[0].hours == 4.0
        assert merged[1].commits == 1
        assert merged[1].hours == 2.5

    def test_missing_hours_default_to_zero(self) -> None:
        """Test weeks absent from the hours series get zero hours."""
        commits = [
            WeekSample(week_start="2023-12-30", commits=2),
            WeekSample(week_start="2024-01-06", commits=5),
        ]
        hours = [WeekSample(week_start="2024-01-06", hours=6.0)]

        merged = merge_weekly_series(commits, hours)

        assert merged[0].hours == 0.0
        assert merged[1].hours == 6.0

    def test_extra_hours_weeks_are_dropped(self) -> None:
        """Test the commit series anchors the label set."""
        commits = [WeekSample(week_start="2024-01-06", commits=1)]
        hours = [
            WeekSample(week_start="2024-01-06", hours=1.0),
            WeekSample(week_start="2024-01-13", hours=9.0),
        ]

        merged = merge_weekly_series(commits, hours)

        assert len(merged) == 1
        assert merged[0].week_start == "2024-01-06"

    def test_hours_in_commit_series_ignored(self) -> None:
        """Test hours always come from the hours series."""
        commits = [WeekSample(week_start="2024-01-06", commits=1, hours=99.0)]
        merged = merge_weekly_series(commits, [])
        assert merged[0].hours == 0.0

    def test_inputs_unchanged(self) -> None:
        """Test merging does not alter its inputs."""
        commits = [WeekSample(week_start="2024-01-06", commits=1)]
        hours = [WeekSample(week_start="2024-01-06", hours=3.0)]

        merge_weekly_series(commits, hours)

        assert commits[0].hours == 0.0
        assert hours[0].commits == 0


class TestHelpers:
    """Tests for series helpers."""

    def test_empty_series(self, week_starts: list[str]) -> None:
        """Test all-zero series over the window."""
        series = empty_series(week_starts)

        assert [s.week_start for s in series] == week_starts
        assert all(s.commits == 0 and s.hours == 0.0 for s in series)

    def test_combine_commit_series(self) -> None:
        """Test commits are summed across repositories."""
        labels = ["2023-12-30", "2024-01-06"]
        repo_a = [
            WeekSample(week_start="2023-12-30", commits=1),
            WeekSample(week_start="2024-01-06", commits=2),
        ]
        repo_b = [
            WeekSample(week_start="2024-01-06", commits=5),
            WeekSample(week_start="2023-10-14", commits=7),
        ]

        combined = combine_commit_series([repo_a, repo_b], labels)

        assert [(s.week_start, s.commits) for s in combined] == [
            ("2023-12-30", 1),
            ("2024-01-06", 7),
        ]

    def test_current_week(self) -> None:
        """Test the most recent sample is selected regardless of order."""
        series = [
            WeekSample(week_start="2024-01-06", commits=4),
            WeekSample(week_start="2023-12-30", commits=1),
        ]
        latest = current_week(series)
        assert latest is not None
        assert latest.commits == 4

    def test_current_week_empty(self) -> None:
        """Test empty series has no current week."""
        assert current_week([]) is None
