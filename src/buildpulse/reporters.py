"""Report generators for BuildPulse.

Provides CSV, JSON and Markdown renderings of a build snapshot.
"""

from __future__ import annotations

import csv
import io
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from buildpulse.models import (
    HealthStatus,
    ProjectPulse,
    PulseSnapshot,
    TrendStats,
    TrendStatus,
)


class ReporterError(Exception):
    """Reporter error."""

    pass


class Reporter(ABC):
    """Base class for report generators."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Get format name."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Get file extension."""
        pass

    @abstractmethod
    def generate(self, snapshot: PulseSnapshot) -> str:
        """Generate report content.

        Args:
            snapshot: Build snapshot.

        Returns:
            Report content as string.
        """
        pass

    def write(
        self,
        snapshot: PulseSnapshot,
        path: Path | str,
    ) -> None:
        """Write report to file.

        Args:
            snapshot: Build snapshot.
            path: Output file path.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        content = self.generate(snapshot)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)


def _ranked(snapshot: PulseSnapshot) -> list[ProjectPulse]:
    return sorted(snapshot.projects, key=lambda p: -p.pulse_score)


class CSVReporter(Reporter):
    """Generate CSV reports for data analysis."""

    @property
    def format_name(self) -> str:
        """Get format name."""
        return "csv"

    @property
    def file_extension(self) -> str:
        """Get file extension."""
        return ".csv"

    def generate(self, snapshot: PulseSnapshot) -> str:
        """Generate CSV report, one row per project."""
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(
            [
                "Project",
                "Health",
                "Trend",
                "Pulse Score",
                "Trend Score",
                "Weekly Commits",
                "Weekly Hours",
                "Target Hours",
                "Target Progress %",
                "Commits Direction",
                "Commits Change %",
                "Hours Direction",
                "Hours Change %",
            ]
        )

        for pulse in sorted(snapshot.projects, key=lambda p: p.project.name):
            writer.writerow(
                [
                    pulse.project.name,
                    pulse.health_status.value,
                    pulse.trend_status.value,
                    round(pulse.pulse_score, 1),
                    round(pulse.trend_score, 1),
                    pulse.weekly_commits,
                    round(pulse.weekly_hours, 2),
                    pulse.hours_target,
                    round(pulse.hours_progress, 1),
                    pulse.commit_trend.direction.value,
                    round(pulse.commit_trend.change_percentage, 1),
                    pulse.hours_trend.direction.value,
                    round(pulse.hours_trend.change_percentage, 1),
                ]
            )

        return output.getvalue()


class JSONReporter(Reporter):
    """Generate compact JSON reports for API consumption."""

    def __init__(self, indent: int = 2, include_weeks: bool = False) -> None:
        """Initialize JSON reporter.

        Args:
            indent: JSON indentation level.
            include_weeks: Whether to include each project's weekly series.
        """
        self.indent = indent
        self.include_weeks = include_weeks

    @property
    def format_name(self) -> str:
        """Get format name."""
        return "json"

    @property
    def file_extension(self) -> str:
        """Get file extension."""
        return ".json"

    def generate(self, snapshot: PulseSnapshot) -> str:
        """Generate JSON report."""
        data = {
            "meta": {
                "generated_at": snapshot.last_updated.isoformat(),
                "generator": "buildpulse",
            },
            "summary": snapshot.summary.model_dump(),
            "projects": [self._project_to_dict(p) for p in _ranked(snapshot)],
        }
        return json.dumps(data, indent=self.indent)

    def _trend_to_dict(self, trend: TrendStats) -> dict[str, Any]:
        return {
            "recent": round(trend.recent, 2),
            "medium": round(trend.medium, 2),
            "longer": round(trend.longer, 2),
            "direction": trend.direction.value,
            "change_percentage": round(trend.change_percentage, 1),
        }

    def _project_to_dict(self, pulse: ProjectPulse) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": pulse.project.name,
            "url": pulse.project.url,
            "health_status": pulse.health_status.value,
            "trend_status": pulse.trend_status.value,
            "pulse_score": round(pulse.pulse_score, 1),
            "trend_score": round(pulse.trend_score, 1),
            "weekly_commits": pulse.weekly_commits,
            "weekly_hours": round(pulse.weekly_hours, 2),
            "target": {
                "hours": pulse.hours_target,
                "progress": round(pulse.hours_progress, 1),
            },
            "commit_trend": self._trend_to_dict(pulse.commit_trend),
            "hours_trend": self._trend_to_dict(pulse.hours_trend),
        }
        if self.include_weeks:
            data["weeks"] = [w.model_dump() for w in pulse.weekly_data]
        return data


class MarkdownReporter(Reporter):
    """Generate Markdown reports for documentation."""

    @property
    def format_name(self) -> str:
        """Get format name."""
        return "markdown"

    @property
    def file_extension(self) -> str:
        """Get file extension."""
        return ".md"

    def generate(self, snapshot: PulseSnapshot) -> str:
        """Generate Markdown report."""
        summary = snapshot.summary
        timestamp = snapshot.last_updated.strftime("%Y-%m-%d %H:%M:%S")

        lines = [
            "# Project Pulse Report",
            "",
            f"**Generated:** {timestamp}",
            "",
            "## Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Projects | {summary.total_projects} |",
            f"| Active | {summary.active_projects} |",
            f"| Slowing | {summary.slowing_projects} |",
            f"| Dormant | {summary.dormant_projects} |",
            f"| Improving | {summary.improving_projects} |",
            f"| Stable | {summary.stable_projects} |",
            f"| Declining | {summary.declining_projects} |",
            f"| Commits This Week | {summary.total_weekly_commits} |",
            f"| Hours This Week | {summary.total_weekly_hours:.1f} / "
            f"{summary.total_target_hours:.1f} |",
            "",
            "## Projects",
            "",
            "| Project | Health | Trend | Score | Commits | Hours | Target |",
            "|---------|--------|-------|-------|---------|-------|--------|",
        ]

        health_emoji = {
            HealthStatus.ACTIVE: ":green_circle:",
            HealthStatus.SLOWING: ":yellow_circle:",
            HealthStatus.DORMANT: ":red_circle:",
        }
        trend_arrow = {
            TrendStatus.IMPROVING: ":arrow_up:",
            TrendStatus.STABLE: ":arrow_right:",
            TrendStatus.DECLINING: ":arrow_down:",
        }

        for pulse in _ranked(snapshot):
            name = pulse.project.name
            if pulse.project.url:
                name = f"[{name}]({pulse.project.url})"
            target = f"{pulse.hours_progress:.0f}%" if pulse.hours_target > 0 else "-"
            lines.append(
                f"| {name} | {health_emoji[pulse.health_status]} "
                f"{pulse.health_status.value} | {trend_arrow[pulse.trend_status]} "
                f"{pulse.trend_status.value} | {pulse.pulse_score:.1f} | "
                f"{pulse.weekly_commits} | {pulse.weekly_hours:.1f} | {target} |"
            )

        declining = [p for p in snapshot.projects if p.trend_status == TrendStatus.DECLINING]
        if declining:
            lines.extend(
                [
                    "",
                    "## Declining Projects",
                    "",
                ]
            )
            for pulse in declining:
                lines.append(
                    f"- **{pulse.project.name}**: commits "
                    f"{pulse.commit_trend.change_percentage:+.0f}%, hours "
                    f"{pulse.hours_trend.change_percentage:+.0f}%"
                )

        lines.extend(
            [
                "",
                "---",
                "*Generated by BuildPulse*",
            ]
        )

        return "\n".join(lines)


class ReportFactory:
    """Factory for creating reporters."""

    _reporters: dict[str, type[Reporter]] = {
        "csv": CSVReporter,
        "json": JSONReporter,
        "markdown": MarkdownReporter,
        "md": MarkdownReporter,
    }

    @classmethod
    def create(cls, format_name: str, **kwargs: Any) -> Reporter:
        """Create reporter by format name.

        Args:
            format_name: Format name (csv, json, markdown).
            **kwargs: Reporter-specific options.

        Returns:
            Reporter instance.

        Raises:
            ReporterError: If format is not supported.
        """
        reporter_cls = cls._reporters.get(format_name.lower())
        if not reporter_cls:
            supported = ", ".join(cls._reporters.keys())
            raise ReporterError(f"Unknown format: {format_name}. Supported: {supported}")

        return reporter_cls(**kwargs)

    @classmethod
    def supported_formats(cls) -> list[str]:
        """Get list of supported formats."""
        return list(cls._reporters.keys())

    @classmethod
    def register(cls, name: str, reporter_cls: type[Reporter]) -> None:
        """Register a custom reporter.

        Args:
            name: Format name.
            reporter_cls: Reporter class.
        """
        cls._reporters[name.lower()] = reporter_cls


def generate_all_reports(
    snapshot: PulseSnapshot,
    output_dir: Path | str,
    formats: list[str] | None = None,
) -> dict[str, Path]:
    """Generate reports in multiple formats.

    Args:
        snapshot: Build snapshot.
        output_dir: Output directory.
        formats: List of formats (default: csv, json, markdown).

    Returns:
        Dictionary of format -> output path.

    Raises:
        ReporterError: If a format is not supported.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if formats is None:
        formats = ["csv", "json", "markdown"]

    results = {}
    for fmt in formats:
        reporter = ReportFactory.create(fmt)
        path = output_dir / f"report{reporter.file_extension}"
        reporter.write(snapshot, path)
        results[fmt] = path

    return results
