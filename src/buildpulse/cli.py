"""Command-line interface for BuildPulse."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from buildpulse import __version__
from buildpulse.builder import BuildError, PulseBuilder
from buildpulse.config import BuildPulseConfig, ConfigError, generate_default_config
from buildpulse.github import GitHubAPIError, GitHubClient
from buildpulse.models import HealthStatus, ProjectPulse, PulseSummary, TrendStatus
from buildpulse.reporters import ReporterError, generate_all_reports
from buildpulse.snapshot import SnapshotError, SnapshotStore
from buildpulse.weeks import describe_current_week, generate_week_starts

app = typer.Typer(
    name="buildpulse",
    help="Weekly project health from commits and tracked hours",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

HEALTH_COLORS = {
    HealthStatus.ACTIVE: "green",
    HealthStatus.SLOWING: "yellow",
    HealthStatus.DORMANT: "red",
}

TREND_COLORS = {
    TrendStatus.IMPROVING: "green",
    TrendStatus.STABLE: "white",
    TrendStatus.DECLINING: "red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"BuildPulse version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable debug logging.",
    ),
) -> None:
    """BuildPulse - project health monitoring."""
    setup_logging(verbose)


def _load_config(config: Optional[Path]) -> BuildPulseConfig:
    try:
        return BuildPulseConfig.load(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def build(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Snapshot JSON path (defaults to the configured one).",
    ),
    markdown: Optional[Path] = typer.Option(
        None,
        "--markdown",
        "-m",
        help="Output Markdown report path.",
    ),
) -> None:
    """Fetch activity, score every project and save the snapshot."""
    pulse_config = _load_config(config)

    async def run_build() -> None:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Building project pulse...", total=None)

            def on_progress(project: str, current: int, total: int) -> None:
                progress.update(
                    task,
                    description=f"Processing {project} ({current}/{total})",
                )

            async with PulseBuilder(pulse_config) as builder:
                builder.set_progress_callback(on_progress)

                try:
                    snapshot = await builder.build_all()
                except (BuildError, ConfigError) as e:
                    console.print(f"[red]Error:[/red] {e}")
                    raise typer.Exit(1)

                progress.update(task, description="Build complete!")

        console.print()
        _print_summary(snapshot.summary)

        top = snapshot.top_project
        if top:
            console.print(f"\nTop project: [bold]{top.name}[/bold] ({top.pulse_score:.1f})")

        path = builder.export_json(output)
        console.print(f"\n[green]Build data saved to:[/green] {path}")

        if markdown:
            builder.export_markdown(markdown)
            console.print(f"[green]Markdown report saved to:[/green] {markdown}")

    asyncio.run(run_build())


def _print_summary(summary: PulseSummary) -> None:
    """Print build summary table."""
    table = Table(title="Project Pulse")

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Projects", str(summary.total_projects))
    table.add_row(
        "Repositories",
        f"{summary.public_projects} public, {summary.private_projects} private",
    )
    table.add_row("Active", f"[green]{summary.active_projects}[/green]")
    table.add_row("Slowing", f"[yellow]{summary.slowing_projects}[/yellow]")
    table.add_row("Dormant", f"[red]{summary.dormant_projects}[/red]")
    table.add_row(
        "Trends",
        f"{summary.improving_projects} improving, {summary.stable_projects} stable, "
        f"{summary.declining_projects} declining",
    )
    table.add_row("Commits This Week", str(summary.total_weekly_commits))
    table.add_row(
        "Hours This Week",
        f"{summary.total_weekly_hours:.1f}h / {summary.total_target_hours:.1f}h target",
    )

    console.print(table)


def _print_projects(pulses: list[ProjectPulse]) -> None:
    """Print one row per project, best score first."""
    table = Table(title="Projects")
    table.add_column("Project", style="cyan")
    table.add_column("Health")
    table.add_column("Trend")
    table.add_column("Score", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Hours", justify="right")
    table.add_column("Target", justify="right")

    for pulse in sorted(pulses, key=lambda p: -p.pulse_score):
        health = HEALTH_COLORS[pulse.health_status]
        trend = TREND_COLORS[pulse.trend_status]
        table.add_row(
            pulse.name,
            f"[{health}]{pulse.health_status.value}[/{health}]",
            f"[{trend}]{pulse.trend_status.value}[/{trend}]",
            f"{pulse.pulse_score:.1f}",
            str(pulse.weekly_commits),
            f"{pulse.weekly_hours:.1f}",
            f"{pulse.hours_progress:.0f}%" if pulse.hours_target > 0 else "-",
        )

    console.print(table)


@app.command()
def show(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
    snapshot_path: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        "-s",
        help="Snapshot JSON path (defaults to the configured one).",
    ),
) -> None:
    """Show the last saved build."""
    pulse_config = _load_config(config)
    store = SnapshotStore(snapshot_path or pulse_config.output.snapshot_path)

    try:
        snapshot = store.load_or_raise()
    except SnapshotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"Last updated: {snapshot.last_updated:%Y-%m-%d %H:%M}\n")
    _print_summary(snapshot.summary)
    if snapshot.projects:
        console.print()
        _print_projects(snapshot.projects)


@app.command()
def project(
    name: str = typer.Argument(..., help="Project name."),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
) -> None:
    """Build and show a single project."""
    pulse_config = _load_config(config)

    async def run() -> None:
        with console.status(f"Processing {name}..."):
            async with PulseBuilder(pulse_config) as builder:
                try:
                    pulse = await builder.build_project(name)
                except (BuildError, ConfigError) as e:
                    console.print(f"[red]Error:[/red] {e}")
                    raise typer.Exit(1)

        health = HEALTH_COLORS[pulse.health_status]
        trend = TREND_COLORS[pulse.trend_status]

        table = Table(title=f"Project: {pulse.name}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")

        table.add_row("Health", f"[{health}]{pulse.health_status.value}[/{health}]")
        table.add_row("Trend", f"[{trend}]{pulse.trend_status.value}[/{trend}]")
        table.add_row("Pulse Score", f"{pulse.pulse_score:.1f}")
        table.add_row("Trend Score", f"{pulse.trend_score:.1f}")
        table.add_row("Commits This Week", str(pulse.weekly_commits))
        table.add_row("Hours This Week", f"{pulse.weekly_hours:.1f}")
        if pulse.hours_target > 0:
            table.add_row(
                "Target",
                f"{pulse.hours_target:g}h ({pulse.hours_progress:.0f}% reached)",
            )
        for label, stats in (("Commits", pulse.commit_trend), ("Hours", pulse.hours_trend)):
            table.add_row(
                f"{label} Trend",
                f"{stats.direction.value} ({stats.change_percentage:+.1f}%)",
            )
            table.add_row(
                f"{label} 2/4/12w",
                f"{stats.recent:.1f} / {stats.medium:.1f} / {stats.longer:.1f}",
            )

        console.print(table)

        console.print("\n[bold]Weekly Activity:[/bold]")
        for week in pulse.weekly_data:
            console.print(f"  {week.week_start}  {week.commits:>4} commits  {week.hours:>6.1f}h")

    asyncio.run(run())


@app.command()
def weeks(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-n",
        min=1,
        help="Weeks in the window (defaults to the configured one).",
    ),
) -> None:
    """Show the current rolling week window."""
    if count is None:
        count = _load_config(config).scoring.window_weeks

    console.print(f"Current week: {describe_current_week()}")
    for label in generate_week_starts(count):
        console.print(f"  {label}")


@app.command()
def report(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Report directory (defaults to the configured one).",
    ),
    formats: Optional[list[str]] = typer.Option(
        None,
        "--format",
        "-f",
        help="Report format (repeatable): csv, json, markdown.",
    ),
) -> None:
    """Render reports from the last saved build."""
    pulse_config = _load_config(config)

    try:
        snapshot = SnapshotStore(pulse_config.output.snapshot_path).load_or_raise()
        paths = generate_all_reports(
            snapshot, output_dir or pulse_config.output.report_dir, formats or None
        )
    except (SnapshotError, ReporterError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for fmt, path in paths.items():
        console.print(f"[green]{fmt}:[/green] {path}")


@app.command("rate-limit")
def rate_limit(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file.",
    ),
) -> None:
    """Show the remaining GitHub API quota."""
    pulse_config = _load_config(config)

    async def run() -> None:
        async with GitHubClient(pulse_config) as client:
            try:
                info = await client.get_rate_limit()
            except GitHubAPIError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1)

        console.print(
            f"GitHub API: {info.remaining}/{info.limit} requests remaining, "
            f"resets at {info.reset:%H:%M:%S}"
        )

    asyncio.run(run())


@app.command()
def init(
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        "-p",
        help="Config file path.",
    ),
) -> None:
    """Initialize BuildPulse configuration."""
    if path is None:
        path = Path.cwd() / "buildpulse.yaml"

    if path.exists():
        overwrite = typer.confirm(f"{path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Exit()

    generate_default_config(path)
    console.print(f"[green]Configuration created:[/green] {path}")
    console.print("\nEdit the file to list your projects and API tokens.")


if __name__ == "__main__":
    app()
