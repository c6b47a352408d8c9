"""Toggl Track API client for BuildPulse."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from buildpulse import __version__
from buildpulse.config import BuildPulseConfig
from buildpulse.models import TogglTimeData, WeekSample
from buildpulse.series import empty_series
from buildpulse.weeks import bucket_for

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


class TogglAPIError(Exception):
    """Toggl API error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _parse_entry_date(entry: dict[str, Any]) -> date | None:
    start = entry.get("start")
    if not start:
        return None
    try:
        return date.fromisoformat(start[:10])
    except ValueError:
        return None


def entry_hours(entry: dict[str, Any]) -> float:
    """Hours recorded by a time entry.

    Running timers report a negative duration and count as zero.
    """
    duration = entry.get("duration") or 0
    if duration < 0:
        logger.debug("Ignoring running timer in entry %s", entry.get("id"))
        return 0.0
    return duration / SECONDS_PER_HOUR


def build_hours_data(
    entries: list[dict[str, Any]],
    project_id: str,
    week_starts: list[str],
) -> TogglTimeData:
    """Bucket one project's time entries into the weekly window.

    The API cannot filter by project, so entries are filtered here.

    Args:
        entries: Raw time entries for the whole account.
        project_id: Toggl project ID.
        week_starts: Window labels, oldest first.

    Returns:
        TogglTimeData for the project.
    """
    project_entries = [e for e in entries if str(e.get("project_id")) == str(project_id)]

    hours = dict.fromkeys(week_starts, 0.0)
    for entry in project_entries:
        entry_date = _parse_entry_date(entry)
        if entry_date is None:
            continue
        label = bucket_for(entry_date, week_starts)
        if label is not None:
            hours[label] += entry_hours(entry)

    weekly_data = [WeekSample(week_start=label, hours=hours[label]) for label in week_starts]
    weekly_hours = weekly_data[-1].hours if weekly_data else 0.0

    logger.info(
        "Filtered %d of %d entries for Toggl project %s (%.2fh this week)",
        len(project_entries),
        len(entries),
        project_id,
        weekly_hours,
    )

    return TogglTimeData(
        project_id=str(project_id),
        weekly_hours=round(weekly_hours, 2),
        total_entries=len(project_entries),
        weekly_data=weekly_data,
    )


def empty_hours_data(project_id: str | None, week_starts: list[str]) -> TogglTimeData:
    """All-zero hours data for projects without Toggl tracking."""
    return TogglTimeData(project_id=project_id or "", weekly_data=empty_series(week_starts))


class TogglClient:
    """Async Toggl Track API client."""

    def __init__(self, config: BuildPulseConfig) -> None:
        """Initialize Toggl client.

        Args:
            config: BuildPulse configuration.
        """
        self.config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TogglClient:
        """Enter async context."""
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""
        await self.close()

    @property
    def is_configured(self) -> bool:
        return self.config.get_toggl_token() is not None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None or self._client.is_closed:
            token = self.config.get_toggl_token()
            if not token:
                raise TogglAPIError("No Toggl API token configured")

            self._client = httpx.AsyncClient(
                base_url=self.config.toggl.api_url,
                auth=(token, "api_token"),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": f"BuildPulse/{__version__}",
                },
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make API request.

        Raises:
            TogglAPIError: If the request fails.
        """
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TogglAPIError(f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise TogglAPIError(
                "Access denied for Toggl API - check API token", response.status_code
            )

        if response.status_code >= 400:
            raise TogglAPIError(
                f"API error: {response.status_code} - {response.text}",
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TogglAPIError(
                f"Invalid JSON from {path}: {e}", response.status_code
            ) from e

    async def get_time_entries(self, start_date: date, end_date: date) -> list[dict[str, Any]]:
        """Get all time entries in a date range.

        Args:
            start_date: First day, inclusive.
            end_date: Last day, exclusive.

        Returns:
            Raw time entries across all projects.
        """
        data = await self._request(
            "GET",
            "/me/time_entries",
            params={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
        if not isinstance(data, list):
            raise TogglAPIError("Unexpected time entries payload")
        logger.info("Fetched %d Toggl time entries", len(data))
        return data

    async def get_projects(self) -> list[dict[str, Any]]:
        """Get the user's Toggl projects."""
        data = await self._request("GET", "/me/projects")
        return data if isinstance(data, list) else []

    async def validate_project_id(self, project_id: str) -> bool:
        """Check if a project ID exists in the user's account."""
        projects = await self.get_projects()
        return any(str(p.get("id")) == str(project_id) for p in projects)

    async def get_project_name(self, project_id: str) -> str | None:
        """Get a Toggl project name by ID."""
        for project in await self.get_projects():
            if str(project.get("id")) == str(project_id):
                return project.get("name")
        return None
