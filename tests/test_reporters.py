"""Tests for report generators."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path

import pytest

from buildpulse.models import (
    HealthStatus,
    Project,
    ProjectPulse,
    PulseSnapshot,
    TrendDirection,
    TrendStats,
    TrendStatus,
    WeekSample,
)
from buildpulse.reporters import (
    CSVReporter,
    JSONReporter,
    MarkdownReporter,
    Reporter,
    ReporterError,
    ReportFactory,
    generate_all_reports,
)


@pytest.fixture
def snapshot() -> PulseSnapshot:
    """Create a snapshot with one healthy and one declining project."""
    atlas = ProjectPulse(
        project=Project(name="Atlas", url="https://example.com/atlas"),
        weekly_commits=12,
        weekly_hours=9.0,
        weekly_data=[WeekSample(week_start="2024-01-06", commits=12, hours=9.0)],
        commit_trend=TrendStats(
            recent=12, medium=8, longer=5, direction=TrendDirection.INCREASING, change_percentage=140
        ),
        pulse_score=42.5,
        trend_score=6.1,
        health_status=HealthStatus.ACTIVE,
        trend_status=TrendStatus.IMPROVING,
        hours_target=8,
        hours_progress=112.5,
    )
    beacon = ProjectPulse(
        project=Project(name="Beacon"),
        commit_trend=TrendStats(direction=TrendDirection.DECREASING, change_percentage=-60),
        pulse_score=2.0,
        health_status=HealthStatus.DORMANT,
        trend_status=TrendStatus.DECLINING,
    )
    return PulseSnapshot.from_pulses(
        [beacon, atlas], last_updated=datetime(2024, 1, 10, 12, 30)
    )


class TestCSVReporter:
    """Tests for CSVReporter."""

    def test_generate(self, snapshot: PulseSnapshot) -> None:
        """Test one row per project, sorted by name."""
        rows = list(csv.reader(io.StringIO(CSVReporter().generate(snapshot))))

        assert rows[0][:4] == ["Project", "Health", "Trend", "Pulse Score"]
        assert [r[0] for r in rows[1:]] == ["Atlas", "Beacon"]
        assert rows[1][1] == "active"
        assert rows[1][3] == "42.5"

    def test_format_properties(self) -> None:
        """Test format name and extension."""
        reporter = CSVReporter()
        assert reporter.format_name == "csv"
        assert reporter.file_extension == ".csv"


class TestJSONReporter:
    """Tests for JSONReporter."""

    def test_generate(self, snapshot: PulseSnapshot) -> None:
        """Test projects are ranked by score."""
        data = json.loads(JSONReporter().generate(snapshot))

        assert data["meta"]["generated_at"] == "2024-01-10T12:30:00"
        assert data["summary"]["total_projects"] == 2
        assert [p["name"] for p in data["projects"]] == ["Atlas", "Beacon"]
        assert data["projects"][0]["target"] == {"hours": 8.0, "progress": 112.5}
        assert data["projects"][0]["commit_trend"]["direction"] == "increasing"
        assert "weeks" not in data["projects"][0]

    def test_include_weeks(self, snapshot: PulseSnapshot) -> None:
        """Test the weekly series can be included."""
        data = json.loads(JSONReporter(include_weeks=True).generate(snapshot))
        assert data["projects"][0]["weeks"][0]["week_start"] == "2024-01-06"


class TestMarkdownReporter:
    """Tests for MarkdownReporter."""

    def test_generate(self, snapshot: PulseSnapshot) -> None:
        """Test Markdown sections."""
        content = MarkdownReporter().generate(snapshot)

        assert content.startswith("# Project Pulse Report")
        assert "**Generated:** 2024-01-10 12:30:00" in content
        assert "| Projects | 2 |" in content
        assert "[Atlas](https://example.com/atlas)" in content
        assert "| 112% |" in content
        assert "## Declining Projects" in content
        assert "- **Beacon**: commits -60%, hours +0%" in content
        assert content.endswith("*Generated by BuildPulse*")

    def test_no_declining_section(self) -> None:
        """Test the declining section is omitted when empty."""
        content = MarkdownReporter().generate(PulseSnapshot())
        assert "## Declining Projects" not in content

    def test_write(self, snapshot: PulseSnapshot, tmp_path: Path) -> None:
        """Test writing creates parent directories."""
        path = tmp_path / "nested" / "report.md"
        MarkdownReporter().write(snapshot, path)
        assert path.read_text(encoding="utf-8").startswith("# Project Pulse Report")


class TestReportFactory:
    """Tests for ReportFactory."""

    def test_create(self) -> None:
        """Test reporters are created by name."""
        assert isinstance(ReportFactory.create("csv"), CSVReporter)
        assert isinstance(ReportFactory.create("JSON"), JSONReporter)
        assert isinstance(ReportFactory.create("md"), MarkdownReporter)

    def test_create_with_options(self) -> None:
        """Test reporter options are passed through."""
        reporter = ReportFactory.create("json", indent=4)
        assert isinstance(reporter, JSONReporter)
        assert reporter.indent == 4

    def test_unknown_format(self) -> None:
        """Test unknown formats."""
        with pytest.raises(ReporterError, match="Unknown format"):
            ReportFactory.create("xml")

    def test_register(self, snapshot: PulseSnapshot) -> None:
        """Test custom reporters can be registered."""

        class NamesReporter(Reporter):
            @property
            def format_name(self) -> str:
                return "names"

            @property
            def file_extension(self) -> str:
                return ".txt"

            def generate(self, snapshot: PulseSnapshot) -> str:
                return "\n".join(p.name for p in snapshot.projects)

        ReportFactory.register("names", NamesReporter)
        try:
            assert ReportFactory.create("names").generate(snapshot) == "Beacon\nAtlas"
            assert "names" in ReportFactory.supported_formats()
        finally:
            ReportFactory._reporters.pop("names")


class TestGenerateAllReports:
    """Tests for generate_all_reports."""

    def test_default_formats(self, snapshot: PulseSnapshot, tmp_path: Path) -> None:
        """Test every default format is written."""
        paths = generate_all_reports(snapshot, tmp_path / "reports")

        assert set(paths) == {"csv", "json", "markdown"}
        assert paths["markdown"] == tmp_path / "reports" / "report.md"
        assert all(p.exists() for p in paths.values())

    def test_unknown_format(self, snapshot: PulseSnapshot, tmp_path: Path) -> None:
        """Test unknown formats fail."""
        with pytest.raises(ReporterError):
            generate_all_reports(snapshot, tmp_path, ["pdf"])
