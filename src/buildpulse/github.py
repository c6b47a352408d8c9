"""GitHub API client for BuildPulse."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import httpx

from buildpulse import __version__
from buildpulse.config import BuildPulseConfig
from buildpulse.models import (
    ProjectCommitData,
    RateLimitInfo,
    RepoCommitData,
    WeekSample,
)
from buildpulse.series import combine_commit_series, empty_series
from buildpulse.weeks import bucket_for

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """GitHub API error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceeded(GitHubAPIError):
    """Rate limit exceeded error."""

    def __init__(self, reset_at: datetime | None = None) -> None:
        super().__init__("GitHub API rate limit exceeded", status_code=403)
        self.reset_at = reset_at


def _split_repo_path(repo_path: str) -> tuple[str, str] | None:
    parts = repo_path.strip().split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


class GitHubClient:
    """Async GitHub API client for weekly commit counts."""

    def __init__(self, config: BuildPulseConfig) -> None:
        """Initialize GitHub client.

        Args:
            config: BuildPulse configuration.
        """
        self.config = config
        self._client: httpx.AsyncClient | None = None
        self._rate_limit_remaining: int = 5000
        self._rate_limit_reset: datetime | None = None

    async def __aenter__(self) -> GitHubClient:
        """Enter async context."""
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None or self._client.is_closed:
            token = self.config.get_github_token()
            headers = {
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": f"BuildPulse/{__version__}",
            }
            if token:
                headers["Authorization"] = f"Bearer {token}"
            else:
                logger.warning("No GitHub token configured; using unauthenticated limits")

            self._client = httpx.AsyncClient(
                base_url=self.config.github.api_url,
                headers=headers,
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _update_rate_limit(self, response: httpx.Response) -> None:
        """Update rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        try:
            if remaining:
                self._rate_limit_remaining = int(remaining)
            if reset:
                self._rate_limit_reset = datetime.fromtimestamp(int(reset))
        except ValueError:
            logger.warning(
                "Ignoring malformed rate limit headers: remaining=%r reset=%r",
                remaining,
                reset,
            )

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> dict[str, Any] | list[Any]:
        """Make API request with rate limit handling.

        Args:
            method: HTTP method.
            path: API path.
            **kwargs: Additional request arguments.

        Returns:
            JSON response data.

        Raises:
            RateLimitExceeded: If rate limit is exceeded.
            GitHubAPIError: If API request fails.
        """
        if self._rate_limit_remaining <= self.config.github.rate_limit_buffer:
            raise RateLimitExceeded(self._rate_limit_reset)

        client = await self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"Request failed: {e}") from e

        self._update_rate_limit(response)

        if response.status_code == 403:
            if "rate limit" in response.text.lower():
                raise RateLimitExceeded(self._rate_limit_reset)
            raise GitHubAPIError(f"Forbidden: {response.text}", 403)

        if response.status_code == 404:
            raise GitHubAPIError(f"Not found: {path}", 404)

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"API error: {response.status_code} - {response.text}",
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"Invalid JSON from {path}: {e}", response.status_code
            ) from e

    async def get_commits(self, repo_path: str, since: datetime) -> list[dict[str, Any]]:
        """Get all commits on the default branch since a point in time.

        Args:
            repo_path: Repository as ``owner/name``.
            since: Earliest commit time.

        Returns:
            Commit data, newest first.
        """
        per_page = self.config.github.per_page
        commits: list[dict[str, Any]] = []

        for page in range(1, self.config.github.max_pages + 1):
            data = await self._request(
                "GET",
                f"/repos/{repo_path}/commits",
                params={
                    "since": since.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "per_page": per_page,
                    "page": page,
                },
            )

            if not data:
                break

            assert isinstance(data, list)
            commits.extend(data)

            if len(data) < per_page:
                break

            if self._rate_limit_remaining < self.config.github.rate_limit_buffer * 2:
                await asyncio.sleep(1)
        else:
            logger.warning(
                "Stopped paging %s after %d pages", repo_path, self.config.github.max_pages
            )

        return commits

    def _parse_datetime(self, dt_str: str | None) -> datetime | None:
        """Parse ISO datetime string."""
        if not dt_str:
            return None
        try:
            return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))
        except ValueError:
            return None

    def _commit_date(self, commit: dict[str, Any]) -> datetime | None:
        author = (commit.get("commit") or {}).get("author") or {}
        return self._parse_datetime(author.get("date"))

    def bucket_commits(
        self, commits: list[dict[str, Any]], week_starts: list[str]
    ) -> list[WeekSample]:
        """Count commits per labelled week.

        Args:
            commits: Raw commit data.
            week_starts: Window labels, oldest first.

        Returns:
            Commit series aligned to ``week_starts``.
        """
        counts = dict.fromkeys(week_starts, 0)
        for commit in commits:
            committed_at = self._commit_date(commit)
            if committed_at is None:
                continue
            label = bucket_for(committed_at, week_starts)
            if label is not None:
                counts[label] += 1
        return [WeekSample(week_start=label, commits=counts[label]) for label in week_starts]

    async def get_repo_commit_data(
        self, repo_path: str, week_starts: list[str]
    ) -> RepoCommitData:
        """Get weekly commit counts for one repository.

        Missing or inaccessible repositories yield an all-zero series.

        Args:
            repo_path: Repository as ``owner/name``.
            week_starts: Window labels, oldest first.

        Returns:
            RepoCommitData for the repository.

        Raises:
            RateLimitExceeded: If the API quota is exhausted.
        """
        if not week_starts:
            return RepoCommitData(repo_name=repo_path)

        if _split_repo_path(repo_path) is None:
            logger.warning("Invalid repository path: %s", repo_path)
            return RepoCommitData(repo_name=repo_path, weekly_data=empty_series(week_starts))

        since = datetime.combine(date.fromisoformat(week_starts[0]), time.min, timezone.utc)

        try:
            commits = await self.get_commits(repo_path, since)
        except RateLimitExceeded:
            raise
        except GitHubAPIError as e:
            if e.status_code == 404:
                logger.warning("Repository %s not found or not accessible", repo_path)
            else:
                logger.warning("Error fetching commits for %s: %s", repo_path, e)
            return RepoCommitData(repo_name=repo_path, weekly_data=empty_series(week_starts))

        weekly_data = self.bucket_commits(commits, week_starts)
        last_commit = self._commit_date(commits[0]) if commits else None

        logger.info(
            "Fetched %d commits for %s over %d weeks (%d this week)",
            len(commits),
            repo_path,
            len(week_starts),
            weekly_data[-1].commits,
        )

        return RepoCommitData(
            repo_name=repo_path,
            weekly_commits=weekly_data[-1].commits,
            last_commit_date=last_commit,
            weekly_data=weekly_data,
            total_commits=len(commits),
        )

    async def get_project_commit_data(
        self,
        project_name: str,
        repositories: list[str],
        week_starts: list[str],
    ) -> ProjectCommitData:
        """Get weekly commits summed over a project's repositories.

        Args:
            project_name: Project name.
            repositories: Repositories as ``owner/name``.
            week_starts: Window labels, oldest first.

        Returns:
            ProjectCommitData for the project.
        """
        if not repositories:
            return ProjectCommitData(
                project_name=project_name, weekly_data=empty_series(week_starts)
            )

        repo_data = await asyncio.gather(
            *(self.get_repo_commit_data(repo, week_starts) for repo in repositories)
        )

        return ProjectCommitData(
            project_name=project_name,
            repositories=list(repo_data),
            total_weekly_commits=sum(r.weekly_commits for r in repo_data),
            weekly_data=combine_commit_series(
                (r.weekly_data for r in repo_data), week_starts
            ),
        )

    async def get_rate_limit(self) -> RateLimitInfo:
        """Get the current API quota."""
        data = await self._request("GET", "/rate_limit")
        assert isinstance(data, dict)
        rate = data.get("rate") or data.get("resources", {}).get("core", {})
        return RateLimitInfo(
            limit=rate.get("limit", 60),
            remaining=rate.get("remaining", 0),
            reset=datetime.fromtimestamp(rate.get("reset", 0))
            if rate.get("reset")
            else datetime.now() + timedelta(hours=1),
        )

    @property
    def rate_limit_remaining(self) -> int:
        """Get remaining rate limit."""
        return self._rate_limit_remaining

    @property
    def rate_limit_reset(self) -> datetime | None:
        """Get rate limit reset time."""
        return self._rate_limit_reset
