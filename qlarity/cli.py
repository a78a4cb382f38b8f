"""CLI entry point for the coverage dashboard."""

from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from qlarity.api.handlers import handle_fetch
from qlarity.coverage.risk import RISK_LEVELS
from qlarity.coverage.scorer import (
    SORT_KEYS,
    STATE_FILTERS,
    calculate_coverage_summary,
    coverage_state_label,
    format_percent,
)
from qlarity.dashboard import ALL, TABS, DashboardState, UploadError, build_view
from qlarity.models.config import DashboardConfig
from qlarity.reporter.json_report import generate_json_report
from qlarity.store.registry import ReportStore

console = Console()

DEFAULT_CONFIG = "qlarity-config.json"

RISK_STYLES = {"critical": "red", "high": "dark_orange", "medium": "yellow", "low": "green"}
CRITICALITY_STYLES = {"High": "red", "Medium": "yellow", "Low": "blue"}
STATE_STYLES = {"full": "green", "partial": "yellow", "none": "red"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_state(config: str) -> DashboardState:
    cfg = DashboardConfig.load_or_default(config)
    state = DashboardState(cfg)
    state.load()
    if not state.records:
        console.print("[red]Failed to load coverage data[/red]")
        console.print("Upload a report with 'qlarity upload <file.json>'.")
        sys.exit(1)
    return state


def _count(value) -> str:
    return "-" if value is None else str(value)


def _tests(value: float) -> str:
    return "nan" if math.isnan(value) else str(int(value))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Test coverage dashboard: risk analysis over uploaded coverage reports"""
    setup_logging(verbose)


@cli.command()
@click.option("--store", default=".qlarity/reports.json", help="Report store path")
def init(store: str) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    cfg = DashboardConfig(store_path=store)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now upload a report and view it:")
    console.print("  [blue]qlarity upload coverage.json[/blue]")
    console.print("  [blue]qlarity show --view risks[/blue]")


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--repository", "-r", default=None, help="Repository name (inferred if omitted)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def upload(file: str, repository: str | None, config: str) -> None:
    """Upload a coverage report JSON file."""
    cfg = DashboardConfig.load_or_default(config)
    state = DashboardState(cfg)
    try:
        result = state.upload(file, repository)
    except UploadError as e:
        console.print(f"[red]Upload failed:[/red] {e}")
        sys.exit(1)
    console.print(f"[green]{result['message']}[/green] ({result['filename']})")


@cli.command("list")
@click.option("--repository", "-r", default=None, help="Only show this repository")
@click.option("--limit", "-n", default=None, type=int, help="Maximum number of reports")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def list_reports(repository: str | None, limit: int | None, config: str) -> None:
    """List the most recently uploaded reports."""
    cfg = DashboardConfig.load_or_default(config)
    response = handle_fetch(
        ReportStore(Path(cfg.store_path)), repository=repository, limit=limit or cfg.fetch_limit,
    )
    if not response.ok:
        console.print(f"[red]{response.body['error']}[/red]")
        sys.exit(1)

    reports = response.body["reports"]
    if not reports:
        console.print("[yellow]No reports stored[/yellow]")
        return
    table = Table(title="Stored Reports")
    table.add_column("ID", style="bold")
    table.add_column("Repository")
    table.add_column("Uploaded")
    table.add_column("Features", justify="right")
    for r in reports:
        table.add_row(r["id"], r["repository"], r.get("uploadedAt", ""), str(len(r["data"].get("features", []))))
    console.print(table)


@cli.command()
@click.option("--select", "-s", "selector", default=ALL, help="Report id, or 'all'")
@click.option("--view", "tab", type=click.Choice(TABS), default="overview", help="Dashboard tab")
@click.option("--state", type=click.Choice(STATE_FILTERS), default="all", help="Features map filter")
@click.option("--sort", "sort_by", type=click.Choice(SORT_KEYS), default="tests", help="Features map order")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def show(selector: str, tab: str, state: str, sort_by: str, config: str) -> None:
    """Show one dashboard view for a report or for all reports."""
    dashboard = _load_state(config)
    report = dashboard.select(selector)
    data = build_view(report, tab, dashboard.config, state=state, sort_by=sort_by)
    console.print(f"[bold]{report.context.repository}[/bold] generated {report.generated_at}\n")
    RENDERERS[tab](data)


@cli.command()
@click.option("--select", "-s", "selector", default=ALL, help="Report id, or 'all'")
@click.option("--output", "-o", default=None, help="Output file path")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def export(selector: str, output: str | None, config: str) -> None:
    """Export a report with its risk analysis as JSON."""
    dashboard = _load_state(config)
    report = dashboard.select(selector)
    path = Path(output) if output else Path(dashboard.config.export_output_dir) / "coverage_report.json"
    generate_json_report(report, path, dashboard.config.risk)
    console.print(f"  JSON report: [blue]{path}[/blue]")


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def summary(config: str) -> None:
    """Print a plain-text coverage summary of all reports."""
    dashboard = _load_state(config)
    console.print(calculate_coverage_summary(dashboard.select(ALL)))


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def reset(config: str) -> None:
    """Delete every stored report."""
    cfg = DashboardConfig.load_or_default(config)
    ReportStore(Path(cfg.store_path)).reset()
    console.print("[green]Report store reset[/green]")


# ---------------------------------------------------------------------------
# View renderers
# ---------------------------------------------------------------------------


def render_overview(data: dict) -> None:
    fc = data["feature_coverage"]
    breakdown = data["breakdown"]
    table = Table(title="Feature Coverage")
    table.add_column("State", style="bold")
    table.add_column("Features", justify="right")
    table.add_column("Share", justify="right")
    table.add_row("[green]Fully covered[/green]", _count(fc.fully_covered), format_percent(breakdown["full"]))
    table.add_row("[yellow]Partially covered[/yellow]", _count(fc.partially_covered), format_percent(breakdown["partial"]))
    table.add_row("[red]No coverage[/red]", _count(fc.no_automated_coverage), format_percent(breakdown["none"]))
    table.add_row("Total", _count(fc.total_features), "")
    console.print(table)

    suites = Table(title="Test Suites")
    suites.add_column("Suite", style="bold")
    suites.add_column("Test files", justify="right")
    suites.add_column("Features covered", justify="right")
    for name, suite in data["suites"].items():
        suites.add_row(name, _count(suite.test_file_count), _count(suite.features_covered))
    console.print(suites)
    console.print(f"Paths analyzed: {len(data['paths_analyzed'])}")


def render_map(data: dict) -> None:
    counts = data["state_counts"]
    console.print("  ".join(
        f"[{STATE_STYLES[s]}]{coverage_state_label(s)}: {c['count']} ({format_percent(c['share'])})[/]"
        for s, c in counts.items()
    ))
    table = Table(title="Features Map")
    table.add_column("Feature", style="bold")
    table.add_column("Module")
    table.add_column("Unit", justify="right")
    table.add_column("Integration", justify="right")
    table.add_column("E2E", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Coverage")
    for f in data["features"]:
        style = STATE_STYLES.get(f.coverage_state, "dim")
        table.add_row(
            f.display_name, f.source_module_path,
            _count(f.unit_integration.unit_test_count),
            _count(f.unit_integration.integration_test_count),
            _count(f.e2e.test_count),
            _tests(f.total_tests),
            f"[{style}]{coverage_state_label(f.coverage_state)}[/]",
        )
    console.print(table)
    console.print(f"Showing {len(data['features'])} features")


def render_pyramid(data: dict) -> None:
    table = Table(title="Test Pyramid")
    table.add_column("Suite", style="bold")
    table.add_column("Test files", justify="right")
    table.add_column("% of tests", justify="right")
    table.add_column("Features covered", justify="right")
    table.add_column("% of features", justify="right")
    for name in ("e2e", "integration", "unit"):
        row = data["pyramid"][name]
        table.add_row(
            name, _count(row["test_files"]), format_percent(row["test_share"]),
            _count(row["features_covered"]), format_percent(row["feature_share"]),
        )
    console.print(table)


def render_risks(data: dict) -> None:
    groups = data["groups"]
    summary_table = Table(title="Risk Summary")
    for level in RISK_LEVELS:
        summary_table.add_column(level.capitalize(), justify="right", style=RISK_STYLES[level])
    summary_table.add_row(*(str(len(groups[level])) for level in RISK_LEVELS))
    console.print(summary_table)

    for level in ("critical", "high", "medium"):
        if not groups[level]:
            continue
        table = Table(title=f"{level.capitalize()} Risk Areas", title_style=RISK_STYLES[level])
        table.add_column("Feature", style="bold")
        table.add_column("Module")
        table.add_column("Tests", justify="right")
        table.add_column("Coverage")
        for risk in groups[level]:
            f = risk.feature
            table.add_row(
                f.display_name, f.source_module_path, _tests(risk.total_tests),
                coverage_state_label(f.coverage_state),
            )
        console.print(table)

    if data["concerns"]:
        console.print("\n[bold]Coverage Concerns & Recommendations[/bold]")
        for concern in data["concerns"]:
            console.print(f"  - {concern.display_name}: {concern.reason}")


def render_blindspots(data: dict) -> None:
    console.print(f"[bold]Total blind spots:[/bold] {data['total']}")
    for reason, spots in data["groups"]:
        console.print(f"\n[yellow]{reason}[/yellow] ({len(spots)} features)")
        for spot in spots:
            console.print(f"  - {spot.display_name} [dim]{spot.feature_key}[/dim]")


def render_actions(data: dict) -> None:
    for criticality, items in data["groups"]:
        if not items:
            continue
        style = CRITICALITY_STYLES[criticality]
        console.print(f"\n[{style}]{criticality} Criticality[/] ({len(items)})")
        for i, item in enumerate(items, 1):
            console.print(f"  {i}. {item.description}")


def render_charts(data: dict) -> None:
    for title, values in (
        ("Test Files by Type", data["test_files"]),
        ("Coverage States", data["coverage_states"]),
        ("Features Covered by Type", data["features_covered"]),
    ):
        table = Table(title=title)
        table.add_column("Series", style="bold")
        table.add_column("Value", justify="right")
        table.add_column("")
        numbers = [v for v in values.values() if v is not None]
        peak = max(numbers) if numbers else 0
        for name, value in values.items():
            bar = "" if not value or not peak else "█" * max(1, round(value / peak * 30))
            table.add_row(name, _count(value), bar)
        console.print(table)


RENDERERS = {
    "overview": render_overview,
    "map": render_map,
    "pyramid": render_pyramid,
    "risks": render_risks,
    "blindspots": render_blindspots,
    "actions": render_actions,
    "charts": render_charts,
}


if __name__ == "__main__":
    cli()
