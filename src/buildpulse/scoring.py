"""Pulse scoring and health classification.

The pulse score blends short, medium and long averages of commits and
hours, then applies two multipliers:

* a trend multiplier rewarding rising activity (at most +50%) and
  penalizing falling activity (at most -30%);
* a target adjustment comparing recent hours against the project's weekly
  target. Meeting the target earns a bonus capped at 1.5x, landing within
  70-100% of it is neutral, and falling short is penalized down to a floor
  of 0.6x.

Every function here is pure and takes its :class:`ScoreConfig` explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from buildpulse.models import (
    HealthStatus,
    Project,
    ProjectPulse,
    ScoreConfig,
    TrendDirection,
    TrendStats,
    TrendStatus,
    WeekSample,
)
from buildpulse.series import current_week, merge_weekly_series
from buildpulse.trends import calculate_trend, classify_trend

logger = logging.getLogger(__name__)

MAX_TREND_BONUS = 0.5
MAX_TREND_PENALTY = 0.3
MAX_TARGET_BONUS = 0.5
MAX_TARGET_PENALTY = 0.4
MIN_TARGET_ADJUSTMENT = 0.6
TARGET_GRACE_RATIO = 0.7
TREND_OVERRIDE_PERCENT = 25.0

_TIERS = [HealthStatus.DORMANT, HealthStatus.SLOWING, HealthStatus.ACTIVE]


@dataclass(frozen=True)
class PulseScore:
    """Scores produced for one project."""

    pulse_score: float
    trend_score: float


def metric_score(trend: TrendStats, config: ScoreConfig) -> float:
    """Weighted blend of a metric's three averages."""
    return (
        trend.recent * config.recent_weight
        + trend.medium * config.medium_weight
        + trend.longer * config.longer_weight
    )


def trend_multiplier(trend: TrendStats) -> float:
    """Get the score multiplier for a metric's direction."""
    if trend.direction == TrendDirection.INCREASING:
        return 1 + min(trend.change_percentage / 100, MAX_TREND_BONUS)
    if trend.direction == TrendDirection.DECREASING:
        return 1 - min(abs(trend.change_percentage) / 100, MAX_TREND_PENALTY)
    return 1.0


def target_completion(hours_trend: TrendStats, target_weekly_hours: float) -> float:
    """Ratio of recent hours to the weekly target; 1 when there is no target."""
    if target_weekly_hours > 0:
        return hours_trend.recent / target_weekly_hours
    return 1.0


def target_adjustment(
    completion: float,
    bonus_multiplier: float,
    penalty_multiplier: float,
) -> float:
    """Get the multiplier for a given target completion ratio."""
    if completion >= 1.0:
        bonus = min((completion - 1.0) * bonus_multiplier, MAX_TARGET_BONUS)
        return 1.0 + bonus
    if completion >= TARGET_GRACE_RATIO:
        return 1.0
    penalty = min((1.0 - completion) * penalty_multiplier, MAX_TARGET_PENALTY)
    return max(MIN_TARGET_ADJUSTMENT, 1.0 - penalty)


def calculate_pulse_score(
    commit_trend: TrendStats,
    hours_trend: TrendStats,
    target_weekly_hours: float,
    config: ScoreConfig,
) -> PulseScore:
    """Calculate the trend and target aware pulse score.

    Args:
        commit_trend: Trend statistics for commits.
        hours_trend: Trend statistics for hours.
        target_weekly_hours: Project's expected weekly hours (0 for none).
        config: Scoring weights.

    Returns:
        Pulse score (never negative) and the trend component.
    """
    base_score = (
        metric_score(commit_trend, config) * config.commit_weight
        + metric_score(hours_trend, config) * config.hours_weight
    )

    average_multiplier = (trend_multiplier(commit_trend) + trend_multiplier(hours_trend)) / 2
    trend_score = base_score * average_multiplier * config.trend_weight

    adjustment = target_adjustment(
        target_completion(hours_trend, target_weekly_hours),
        config.target_completion_bonus,
        config.target_completion_penalty,
    )

    return PulseScore(
        pulse_score=max(0.0, (base_score + trend_score) * adjustment),
        trend_score=trend_score,
    )


def base_health(pulse_score: float, config: ScoreConfig) -> HealthStatus:
    """Health tier from the score alone."""
    if pulse_score >= config.active_threshold:
        return HealthStatus.ACTIVE
    if pulse_score >= config.slowing_threshold:
        return HealthStatus.SLOWING
    return HealthStatus.DORMANT


def classify_health(
    pulse_score: float,
    commit_trend: TrendStats,
    hours_trend: TrendStats,
    config: ScoreConfig,
) -> HealthStatus:
    """Classify health, moving at most one tier on strong trends.

    A strongly improving project (either metric above +25%) is promoted one
    tier and a strongly declining one (either metric below -25%) is demoted
    one tier.
    """
    tier = _TIERS.index(base_health(pulse_score, config))
    status = classify_trend(commit_trend, hours_trend)
    changes = (commit_trend.change_percentage, hours_trend.change_percentage)

    if status == TrendStatus.IMPROVING and any(c > TREND_OVERRIDE_PERCENT for c in changes):
        tier = min(tier + 1, len(_TIERS) - 1)
    elif status == TrendStatus.DECLINING and any(
        c < -TREND_OVERRIDE_PERCENT for c in changes
    ):
        tier = max(tier - 1, 0)

    return _TIERS[tier]


def evaluate_project(
    project: Project,
    commit_series: Sequence[WeekSample],
    hours_series: Sequence[WeekSample],
    config: ScoreConfig,
) -> ProjectPulse:
    """Run the full pulse pipeline for one project.

    Args:
        project: Project being evaluated.
        commit_series: Weekly commit counts.
        hours_series: Weekly tracked hours.
        config: Scoring weights.

    Returns:
        Fresh ProjectPulse record.
    """
    weekly_data = merge_weekly_series(commit_series, hours_series)

    commit_trend = calculate_trend(weekly_data, "commits")
    hours_trend = calculate_trend(weekly_data, "hours")

    score = calculate_pulse_score(
        commit_trend, hours_trend, project.target_weekly_hours, config
    )
    health_status = classify_health(score.pulse_score, commit_trend, hours_trend, config)
    trend_status = classify_trend(commit_trend, hours_trend)

    latest = current_week(weekly_data)
    target = project.target_weekly_hours
    hours_progress = hours_trend.recent / target * 100 if target > 0 else 0.0

    logger.info(
        "%s: commits %s (%.1f%%), hours %s (%.1f%%), score %.1f (trend %.1f), %s/%s",
        project.name,
        commit_trend.direction.value,
        commit_trend.change_percentage,
        hours_trend.direction.value,
        hours_trend.change_percentage,
        score.pulse_score,
        score.trend_score,
        health_status.value,
        trend_status.value,
    )

    return ProjectPulse(
        project=project,
        weekly_commits=latest.commits if latest else 0,
        weekly_hours=latest.hours if latest else 0.0,
        weekly_data=weekly_data,
        commit_trend=commit_trend,
        hours_trend=hours_trend,
        pulse_score=score.pulse_score,
        trend_score=score.trend_score,
        health_status=health_status,
        trend_status=trend_status,
        hours_target=target,
        hours_progress=hours_progress,
    )
