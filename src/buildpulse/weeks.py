"""Saturday-based week window helpers.

Weeks run Saturday through Friday. Each week is labelled by the ISO date
(``YYYY-MM-DD``) of its Saturday; labels are the join key between the
commit and hours series.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

WEEK_START_WEEKDAY = 5  # Saturday, as returned by date.weekday()
DEFAULT_WINDOW_WEEKS = 12


def _today(now: date | datetime | None) -> date:
    if now is None:
        return datetime.now(timezone.utc).date()
    if isinstance(now, datetime):
        return now.date()
    return now


def week_start_for(day: date | datetime) -> date:
    """Get the Saturday on or before ``day``."""
    day = _today(day)
    return day - timedelta(days=(day.weekday() - WEEK_START_WEEKDAY) % 7)


def generate_week_starts(
    count: int = DEFAULT_WINDOW_WEEKS,
    now: date | datetime | None = None,
) -> list[str]:
    """Generate week labels for the rolling window.

    Args:
        count: Number of weeks in the window.
        now: Reference date. Defaults to the current UTC date.

    Returns:
        ``count`` ISO date labels, oldest first.
    """
    today = _today(now)
    return [
        week_start_for(today - timedelta(days=(count - 1 - i) * 7)).isoformat()
        for i in range(count)
    ]


def current_week_start(now: date | datetime | None = None) -> date:
    """Get the start of the current week."""
    return week_start_for(_today(now))


def days_since_week_start(now: date | datetime | None = None) -> int:
    """Number of days elapsed since the last Saturday."""
    today = _today(now)
    return (today - week_start_for(today)).days


def is_in_current_week(day: date | datetime, now: date | datetime | None = None) -> bool:
    """Check if ``day`` falls on or after the current week start."""
    return _today(day) >= current_week_start(now)


def describe_current_week(now: date | datetime | None = None) -> str:
    """Human-readable description of the current week."""
    start = current_week_start(now)
    end = start + timedelta(days=6)
    return f"{start.isoformat()} to {end.isoformat()} (Saturday-Friday)"


def week_bounds(label: str) -> tuple[date, date]:
    """Get the ``(start, end)`` dates of a labelled week, end exclusive."""
    start = date.fromisoformat(label)
    return start, start + timedelta(days=7)


def bucket_for(day: date | datetime, week_starts: list[str]) -> str | None:
    """Find the week label containing ``day``.

    Returns:
        Matching label, or None if ``day`` falls outside the window.
    """
    label = week_start_for(day).isoformat()
    return label if label in week_starts else None
