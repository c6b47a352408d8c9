"""Data models for BuildPulse project tracking."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)


class TrendDirection(str, Enum):
    """Direction of a single metric over the window."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class HealthStatus(str, Enum):
    """Project health tiers."""

    ACTIVE = "active"
    SLOWING = "slowing"
    DORMANT = "dormant"


class TrendStatus(str, Enum):
    """Combined direction of commits and hours."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class WeekSample(BaseModel):
    """Activity recorded for one Saturday-based week."""

    model_config = ConfigDict(frozen=True)

    week_start: str
    commits: int = 0
    hours: float = 0.0

    @field_validator("commits", "hours")
    @classmethod
    def _clamp_negative(cls, value: int | float, info: ValidationInfo) -> int | float:
        # Upstream timers still running report negative durations.
        if value < 0:
            logger.warning(
                "Clamping negative %s sample (%s) to 0", info.field_name, value
            )
            return type(value)(0)
        return value


class TrendStats(BaseModel):
    """Short, medium and long averages for one metric."""

    model_config = ConfigDict(frozen=True)

    recent: float = 0.0
    medium: float = 0.0
    longer: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE
    change_percentage: float = 0.0


class ScoreConfig(BaseModel):
    """Weights and thresholds for one evaluation run.

    The target completion multipliers have no default and must always be
    supplied by the caller.
    """

    model_config = ConfigDict(frozen=True)

    commit_weight: float = 1.5
    hours_weight: float = 2.0
    active_threshold: float = 8.0
    slowing_threshold: float = 4.0
    recent_weight: float = 0.5
    medium_weight: float = 0.3
    longer_weight: float = 0.2
    trend_weight: float = 0.2
    target_completion_bonus: float
    target_completion_penalty: float


class Project(BaseModel):
    """A tracked project and its data sources."""

    name: str
    description: str = ""
    github_repos: list[str] = Field(default_factory=list)
    github_repos_private: list[str] = Field(default_factory=list)
    toggl_project_id: str | None = None
    start_year: int | None = None
    end_year: int | None = None
    tags: list[str] = Field(default_factory=list)
    url: str | None = None
    logo: str | None = None
    target_weekly_hours: float = Field(default=0.0, ge=0.0)

    @field_validator("github_repos", "github_repos_private", "tags", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("toggl_project_id", mode="before")
    @classmethod
    def _stringify_toggl_id(cls, value: Any) -> Any:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def all_repos(self) -> list[str]:
        """Public and private repositories, public first."""
        return [*self.github_repos, *self.github_repos_private]

    @property
    def has_github(self) -> bool:
        return bool(self.all_repos)

    @property
    def has_toggl(self) -> bool:
        return self.toggl_project_id is not None

    def is_active_in(self, year: int) -> bool:
        """Check whether the project has not ended before ``year``."""
        return self.end_year is None or self.end_year >= year

    def has_repo(self, repo_name: str) -> bool:
        return repo_name in self.all_repos


class ProjectPulse(BaseModel):
    """Evaluated health record for one project."""

    model_config = ConfigDict(frozen=True)

    project: Project
    weekly_commits: int = 0
    weekly_hours: float = 0.0
    weekly_data: list[WeekSample] = Field(default_factory=list)
    commit_trend: TrendStats = Field(default_factory=TrendStats)
    hours_trend: TrendStats = Field(default_factory=TrendStats)
    pulse_score: float = Field(default=0.0, ge=0.0)
    trend_score: float = 0.0
    health_status: HealthStatus = HealthStatus.DORMANT
    trend_status: TrendStatus = TrendStatus.STABLE
    hours_target: float = 0.0
    hours_progress: float = 0.0

    @property
    def name(self) -> str:
        return self.project.name

    @property
    def meets_target(self) -> bool:
        """Check if recent hours reach the weekly target."""
        return self.hours_target > 0 and self.hours_progress >= 100.0


class RepoCommitData(BaseModel):
    """Weekly commit counts for one repository."""

    repo_name: str
    weekly_commits: int = 0
    last_commit_date: datetime | None = None
    weekly_data: list[WeekSample] = Field(default_factory=list)
    total_commits: int = 0


class ProjectCommitData(BaseModel):
    """Weekly commit counts summed over a project's repositories."""

    project_name: str
    repositories: list[RepoCommitData] = Field(default_factory=list)
    total_weekly_commits: int = 0
    weekly_data: list[WeekSample] = Field(default_factory=list)


class TogglTimeData(BaseModel):
    """Weekly tracked hours for one Toggl project."""

    project_id: str
    weekly_hours: float = 0.0
    total_entries: int = 0
    weekly_data: list[WeekSample] = Field(default_factory=list)


class RateLimitInfo(BaseModel):
    """GitHub API quota."""

    limit: int
    remaining: int
    reset: datetime


class PulseSummary(BaseModel):
    """Aggregate counts across all evaluated projects."""

    total_projects: int = 0
    public_projects: int = 0
    private_projects: int = 0
    active_projects: int = 0
    slowing_projects: int = 0
    dormant_projects: int = 0
    total_weekly_commits: int = 0
    total_weekly_hours: float = 0.0
    total_target_hours: float = 0.0
    improving_projects: int = 0
    declining_projects: int = 0
    stable_projects: int = 0

    @classmethod
    def from_pulses(cls, pulses: list[ProjectPulse]) -> PulseSummary:
        """Summarize a list of project pulses."""
        return cls(
            total_projects=len(pulses),
            public_projects=sum(1 for p in pulses if p.project.github_repos),
            private_projects=sum(1 for p in pulses if p.project.github_repos_private),
            active_projects=sum(1 for p in pulses if p.health_status == HealthStatus.ACTIVE),
            slowing_projects=sum(1 for p in pulses if p.health_status == HealthStatus.SLOWING),
            dormant_projects=sum(1 for p in pulses if p.health_status == HealthStatus.DORMANT),
            total_weekly_commits=sum(p.weekly_commits for p in pulses),
            total_weekly_hours=sum(p.weekly_hours for p in pulses),
            total_target_hours=sum(p.hours_target for p in pulses),
            improving_projects=sum(
                1 for p in pulses if p.trend_status == TrendStatus.IMPROVING
            ),
            declining_projects=sum(
                1 for p in pulses if p.trend_status == TrendStatus.DECLINING
            ),
            stable_projects=sum(1 for p in pulses if p.trend_status == TrendStatus.STABLE),
        )

    @property
    def active_percentage(self) -> float:
        """Calculate percentage of active projects."""
        if self.total_projects == 0:
            return 0.0
        return (self.active_projects / self.total_projects) * 100


class PulseSnapshot(BaseModel):
    """Flat result of one build run."""

    projects: list[ProjectPulse] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)
    summary: PulseSummary = Field(default_factory=PulseSummary)

    @classmethod
    def from_pulses(
        cls,
        pulses: list[ProjectPulse],
        last_updated: datetime | None = None,
    ) -> PulseSnapshot:
        """Create a snapshot with its summary computed from ``pulses``."""
        return cls(
            projects=pulses,
            last_updated=last_updated or datetime.now(),
            summary=PulseSummary.from_pulses(pulses),
        )

    @property
    def top_project(self) -> ProjectPulse | None:
        """Project with the highest pulse score."""
        if not self.projects:
            return None
        return max(self.projects, key=lambda p: p.pulse_score)

    def get_project(self, name: str) -> ProjectPulse | None:
        for pulse in self.projects:
            if pulse.project.name.lower() == name.lower():
                return pulse
        return None
