"""Build project pulse data from GitHub and Toggl."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable

from buildpulse.config import BuildPulseConfig
from buildpulse.github import GitHubClient, RateLimitExceeded
from buildpulse.models import Project, ProjectPulse, PulseSnapshot
from buildpulse.reporters import MarkdownReporter
from buildpulse.scoring import evaluate_project
from buildpulse.snapshot import SnapshotStore
from buildpulse.toggl import TogglAPIError, TogglClient, build_hours_data, empty_hours_data
from buildpulse.weeks import generate_week_starts

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Build error."""

    pass


class PulseBuilder:
    """Evaluate the pulse of every tracked project.

    Fetches weekly commits from GitHub and weekly hours from Toggl, then
    runs each project through the scoring pipeline.

    Example:
        >>> config = BuildPulseConfig.load()
        >>> async with PulseBuilder(config) as builder:
        ...     snapshot = await builder.build_all()
        >>> print(snapshot.summary.active_projects)
    """

    def __init__(
        self,
        config: BuildPulseConfig | None = None,
        now: date | datetime | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            config: BuildPulse configuration. If None, loads default config.
            now: Reference date for the week window. Defaults to today.
        """
        self.config = config or BuildPulseConfig.load()
        self.week_starts = generate_week_starts(self.config.scoring.window_weeks, now)
        self._score_config = self.config.scoring.to_score_config()
        self._github: GitHubClient | None = None
        self._toggl: TogglClient | None = None
        self._time_entries: list[dict[str, Any]] | None = None
        self._toggl_unavailable = False
        self._snapshot: PulseSnapshot | None = None
        self._progress_callback: Callable[[str, int, int], None] | None = None

    @property
    def snapshot(self) -> PulseSnapshot | None:
        """Get the latest build result."""
        return self._snapshot

    def set_progress_callback(self, callback: Callable[[str, int, int], None]) -> None:
        """Set progress callback for build updates.

        Args:
            callback: Function called with (project_name, current, total).
        """
        self._progress_callback = callback

    def _report_progress(self, project_name: str, current: int, total: int) -> None:
        if self._progress_callback:
            self._progress_callback(project_name, current, total)

    def _get_github(self) -> GitHubClient:
        if self._github is None:
            self._github = GitHubClient(self.config)
        return self._github

    def _get_toggl(self) -> TogglClient:
        if self._toggl is None:
            self._toggl = TogglClient(self.config)
        return self._toggl

    async def close(self) -> None:
        """Close API clients."""
        if self._github:
            await self._github.close()
            self._github = None
        if self._toggl:
            await self._toggl.close()
            self._toggl = None

    async def __aenter__(self) -> PulseBuilder:
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""
        await self.close()

    async def _load_time_entries(self) -> list[dict[str, Any]] | None:
        """Fetch Toggl entries covering the window, once per build.

        A missing token or a failed fetch is remembered, so Toggl is asked
        at most once per builder.

        Returns:
            Entries, or None when Toggl is unavailable.
        """
        if self._time_entries is not None:
            return self._time_entries
        if self._toggl_unavailable:
            return None

        toggl = self._get_toggl()
        if not toggl.is_configured:
            logger.warning("No Toggl API token configured; hours will be zero")
            self._toggl_unavailable = True
            return None

        start = date.fromisoformat(self.week_starts[0])
        end = date.fromisoformat(self.week_starts[-1]) + timedelta(days=7)
        try:
            self._time_entries = await toggl.get_time_entries(start, end)
        except TogglAPIError as e:
            logger.warning("Toggl unavailable, hours will be zero: %s", e)
            self._toggl_unavailable = True
            return None

        return self._time_entries

    async def evaluate(self, project: Project) -> ProjectPulse:
        """Fetch both series for a project and score it.

        Raises:
            BuildError: If the GitHub rate limit is exhausted.
        """
        try:
            commit_data = await self._get_github().get_project_commit_data(
                project.name, project.all_repos, self.week_starts
            )
        except RateLimitExceeded as e:
            raise BuildError(f"GitHub rate limit exceeded. Resets at: {e.reset_at}") from e

        entries = await self._load_time_entries() if project.has_toggl else None
        if entries is not None and project.toggl_project_id:
            hours_data = build_hours_data(entries, project.toggl_project_id, self.week_starts)
        else:
            hours_data = empty_hours_data(project.toggl_project_id, self.week_starts)

        return evaluate_project(
            project, commit_data.weekly_data, hours_data.weekly_data, self._score_config
        )

    async def build_all(self, projects: list[Project] | None = None) -> PulseSnapshot:
        """Build pulse data for all tracked projects.

        Args:
            projects: Projects to evaluate. Defaults to the configured ones.

        Returns:
            PulseSnapshot with one record per project.

        Raises:
            BuildError: If the build cannot complete.
        """
        if projects is None:
            projects = self.config.load_projects()

        pulses: list[ProjectPulse] = []
        total = len(projects)
        for i, project in enumerate(projects, 1):
            self._report_progress(project.name, i, total)
            pulses.append(await self.evaluate(project))

        self._snapshot = PulseSnapshot.from_pulses(pulses)
        summary = self._snapshot.summary
        logger.info(
            "Health: %d active, %d slowing, %d dormant; trends: %d improving, "
            "%d stable, %d declining",
            summary.active_projects,
            summary.slowing_projects,
            summary.dormant_projects,
            summary.improving_projects,
            summary.stable_projects,
            summary.declining_projects,
        )
        return self._snapshot

    async def build_project(self, name: str) -> ProjectPulse:
        """Build pulse data for a single project.

        Raises:
            BuildError: If the project is unknown or the build fails.
        """
        project = self.config.get_project(name)
        if project is None:
            raise BuildError(f"Unknown project: {name}")
        return await self.evaluate(project)

    def export_json(self, path: Path | str | None = None) -> Path:
        """Save the latest snapshot.

        Args:
            path: Output file path. Defaults to the configured snapshot path.

        Returns:
            Path written.
        """
        if not self._snapshot:
            raise BuildError("No build data available. Run build_all() first.")

        store = SnapshotStore(path or self.config.output.snapshot_path)
        store.save(self._snapshot)
        return store.path

    def export_markdown(self, path: Path | str) -> None:
        """Write the latest snapshot as a Markdown report."""
        if not self._snapshot:
            raise BuildError("No build data available. Run build_all() first.")

        MarkdownReporter().write(self._snapshot, path)


def run_build(
    config_path: str | Path | None = None,
    save: bool = True,
) -> PulseSnapshot:
    """Synchronous wrapper to run a full build.

    Args:
        config_path: Path to config file.
        save: Whether to write the snapshot to the configured path.

    Returns:
        PulseSnapshot with build results.
    """
    config = BuildPulseConfig.load(config_path)

    async def _run() -> PulseSnapshot:
        async with PulseBuilder(config) as builder:
            snapshot = await builder.build_all()
            if save:
                builder.export_json()
            return snapshot

    return asyncio.run(_run())
