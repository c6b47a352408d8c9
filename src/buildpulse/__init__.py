"""BuildPulse - Weekly project health from commits and tracked hours.

Combines GitHub commit activity and Toggl Track hours over a rolling
12-week window into a pulse score, a health tier and a trend status
for every tracked project.
"""

__version__ = "0.1.0"

from buildpulse.builder import BuildError, PulseBuilder, run_build
from buildpulse.config import BuildPulseConfig
from buildpulse.models import (
    HealthStatus,
    Project,
    ProjectPulse,
    PulseSnapshot,
    PulseSummary,
    ScoreConfig,
    TrendDirection,
    TrendStats,
    TrendStatus,
    WeekSample,
)
from buildpulse.reporters import ReportFactory, generate_all_reports
from buildpulse.scoring import calculate_pulse_score, classify_health, evaluate_project
from buildpulse.series import merge_weekly_series
from buildpulse.snapshot import SnapshotStore
from buildpulse.trends import calculate_trend, classify_trend
from buildpulse.weeks import generate_week_starts

__all__ = [
    # Core
    "PulseBuilder",
    "BuildPulseConfig",
    "BuildError",
    "run_build",
    # Models
    "HealthStatus",
    "Project",
    "ProjectPulse",
    "PulseSnapshot",
    "PulseSummary",
    "ScoreConfig",
    "TrendDirection",
    "TrendStats",
    "TrendStatus",
    "WeekSample",
    # Engine
    "calculate_pulse_score",
    "calculate_trend",
    "classify_health",
    "classify_trend",
    "evaluate_project",
    "generate_week_starts",
    "merge_weekly_series",
    # Output
    "ReportFactory",
    "SnapshotStore",
    "generate_all_reports",
]
