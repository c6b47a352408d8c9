"""Shared fixtures for BuildPulse tests."""

from __future__ import annotations

from datetime import date

import pytest

from buildpulse.models import ScoreConfig, WeekSample
from buildpulse.weeks import generate_week_starts

# 2024-01-10 is a Wednesday; its week starts on Saturday 2024-01-06.
REFERENCE_DATE = date(2024, 1, 10)


@pytest.fixture
def week_starts() -> list[str]:
    """Twelve week labels ending with the week of 2024-01-06."""
    return generate_week_starts(12, now=REFERENCE_DATE)


@pytest.fixture
def score_config() -> ScoreConfig:
    """Default weights with explicit target multipliers."""
    return ScoreConfig(target_completion_bonus=0.5, target_completion_penalty=0.5)


@pytest.fixture
def burst_series(week_starts: list[str]) -> list[WeekSample]:
    """Idle window with 10 commits and 10 hours in each of the last two weeks."""
    return [
        WeekSample(
            week_start=label,
            commits=10 if i >= 10 else 0,
            hours=10.0 if i >= 10 else 0.0,
        )
        for i, label in enumerate(week_starts)
    ]
