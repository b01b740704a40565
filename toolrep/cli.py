"""CLI interface for toolrep."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from toolrep.consts import DEFAULT_DATA_DIR, FACTOR_NAMES, HISTORY_DEFAULT_LIMIT
from toolrep.errors import ToolRepError
from toolrep.models.model_score import Trend
from toolrep.models.model_tool import Tool
from toolrep.runtime import Services, build_services
from toolrep.storage.base import CatalogStore

app = typer.Typer(
    name="toolrep",
    help="toolrep - Collect tool metadata from public sources and score tool reputation",
)

console = Console()


def _get_score_color(score: float) -> str:
    """Get color for score display."""
    if score >= 70:
        return "green"
    elif score >= 50:
        return "yellow"
    else:
        return "red"


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _format_factor(value: float | None) -> str:
    return "-" if value is None else f"{value:.0f}"


def _services(ctx: typer.Context) -> Services:
    return build_services(data_dir=ctx.obj["data_dir"])


def _resolve_tool(store: CatalogStore, key: str) -> Tool:
    """Find a tool by ID or URL, exiting with an error if none matches."""
    tool = store.get_tool(key) or store.find_tool_by_url(key)
    if tool is None:
        console.print(f"[red]Error:[/red] No tool with ID or URL '{key}'")
        raise typer.Exit(1)
    return tool


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path = typer.Option(
        DEFAULT_DATA_DIR, "--data-dir", "-d", help="Data directory", envvar="TOOLREP_DATA_DIR"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging and the data directory for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    ctx.obj = {"data_dir": data_dir}


@app.command()
def collect(
    ctx: typer.Context,
    source: list[str] = typer.Option(
        None, "--source", "-s", help="Source to collect from (repeatable: directory, github)"
    ),
) -> None:
    """Collect tools from sources and update the catalog."""
    services = _services(ctx)
    known = {adapter.name for adapter in services.adapters}
    unknown = [s for s in source or [] if s not in known]
    if unknown:
        console.print(
            f"[red]Error:[/red] Unknown source(s) {', '.join(unknown)}. "
            f"Must be: {', '.join(sorted(known))}"
        )
        raise typer.Exit(1)

    async def run() -> bool:
        try:
            return await services.collection.trigger_collection(source or None)
        finally:
            await services.aclose()

    console.print("\n[bold]Collecting...[/bold]\n")
    asyncio.run(run())

    result = services.collection.last_result
    if result is None:
        console.print("[red]Collection did not complete. See log for details.[/red]")
        raise typer.Exit(1)

    summary_table = Table(title="Collection Summary")
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Count", justify="right", style="magenta")
    summary_table.add_row("Sources", ", ".join(result.sources))
    summary_table.add_row("Records", str(result.records_collected))
    summary_table.add_row("Created", str(result.created))
    summary_table.add_row("Updated", str(result.updated))
    summary_table.add_row("Failed", str(result.failed))
    summary_table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    console.print(summary_table)

    if result.failures:
        console.print(f"\n[yellow]Failed tools ({len(result.failures)}):[/yellow]")
        for url, error in list(result.failures.items())[:5]:
            console.print(f"  [dim]{url}:[/dim] {error[:80]}")
        if len(result.failures) > 5:
            console.print(f"  [dim]... and {len(result.failures) - 5} more[/dim]")


@app.command()
def score(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Recalculate scores younger than 24h"),
) -> None:
    """Calculate reputation scores for all active tools."""
    services = _services(ctx)

    async def run() -> bool:
        try:
            return await services.scoring.trigger_calculation(force_recalculate=force)
        finally:
            await services.aclose()

    console.print("\n[bold]Scoring...[/bold]\n")
    asyncio.run(run())

    result = services.scoring.last_result
    if result is None:
        console.print("[red]Scoring did not complete. See log for details.[/red]")
        raise typer.Exit(1)

    summary_table = Table(title="Scoring Summary")
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Count", justify="right", style="magenta")
    summary_table.add_row("Tools", str(result.total))
    summary_table.add_row("Calculated", str(result.calculated))
    summary_table.add_row("Cached", str(result.cached))
    summary_table.add_row("Failed", str(result.failed))
    summary_table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    console.print(summary_table)


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run startup collection and scoring, then keep both on a daily schedule."""
    services = _services(ctx)

    async def run() -> None:
        try:
            await services.start()
            console.print("[green]Scheduler running. Press Ctrl+C to stop.[/green]")
            await asyncio.Event().wait()
        finally:
            await services.aclose()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")


@app.command()
def show(
    ctx: typer.Context,
    tool_key: str = typer.Argument(..., help="Tool ID or URL"),
) -> None:
    """Show a fresh score breakdown for one tool."""
    services = _services(ctx)
    tool = _resolve_tool(services.store, tool_key)

    async def run():
        try:
            return await services.scoring.get_score_breakdown(tool.id)
        finally:
            await services.aclose()

    breakdown = asyncio.run(run())
    if breakdown is None:
        console.print(f"[red]Error:[/red] Tool {tool.id} disappeared from the catalog")
        raise typer.Exit(1)

    color = _get_score_color(breakdown.overall_score)
    console.print(f"\n[bold]{tool.name}[/bold] [dim]({tool.url})[/dim]")
    console.print(f"Overall score: [{color}]{breakdown.overall_score}[/{color}]\n")

    table = Table(title="Score Breakdown")
    table.add_column("Factor", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Weight", justify="right", style="dim")
    table.add_column("Share", justify="right", style="magenta")
    table.add_column("Details", style="dim")

    for name, factor in breakdown.factors.items():
        share = breakdown.factor_contributions.get(name, 0)
        details = ""
        if factor.details is not None:
            message = getattr(factor.details, "message", None)
            details = message or factor.details.kind
        table.add_row(
            name,
            f"{factor.score:.0f}",
            f"{factor.confidence:.2f}",
            f"{factor.weight:.2f}",
            f"{share:.0f}%",
            _truncate(details, 40),
        )
    console.print(table)


@app.command()
def history(
    ctx: typer.Context,
    tool_key: str = typer.Argument(..., help="Tool ID or URL"),
    limit: int = typer.Option(HISTORY_DEFAULT_LIMIT, "--limit", "-l", help="Number of rows"),
) -> None:
    """Show score history for one tool, most recent first."""
    services = _services(ctx)
    tool = _resolve_tool(services.store, tool_key)
    rows = services.scoring.get_score_history(tool.id, limit)

    if not rows:
        console.print("[yellow]No scores yet. Run 'toolrep score' first.[/yellow]")
        return

    table = Table(title=f"Score History: {tool.name}")
    table.add_column("Calculated", style="cyan")
    table.add_column("Overall", justify="right")
    for name in FACTOR_NAMES:
        table.add_column(name, justify="right", style="dim")

    for row in rows:
        color = _get_score_color(row.overall_score)
        table.add_row(
            row.calculated_at.strftime("%Y-%m-%d %H:%M"),
            f"[{color}]{row.overall_score}[/{color}]",
            *[_format_factor(getattr(row, f"{name}_score")) for name in FACTOR_NAMES],
        )
    console.print(table)


@app.command()
def trend(
    ctx: typer.Context,
    tool_key: str = typer.Argument(..., help="Tool ID or URL"),
) -> None:
    """Show the direction of the latest score change."""
    services = _services(ctx)
    tool = _resolve_tool(services.store, tool_key)
    direction = services.scoring.get_score_trend(tool.id)

    if direction is None:
        console.print("[yellow]Not enough history for a trend.[/yellow]")
        return

    colors = {Trend.POSITIVE: "green", Trend.NEGATIVE: "red", Trend.NEUTRAL: "yellow"}
    color = colors[direction]
    console.print(f"{tool.name}: [{color}]{direction.value}[/{color}]")


@app.command()
def top(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-l", help="Number of results"),
) -> None:
    """Show top-rated tools by their latest score."""
    services = _services(ctx)
    scored = []
    for tool in services.store.list_tools(active_only=True):
        latest = services.scoring.get_score(tool.id)
        if latest is not None:
            scored.append((tool, latest))

    if not scored:
        console.print("[yellow]No scored tools found.[/yellow]")
        return

    scored.sort(key=lambda pair: pair[1].overall_score, reverse=True)
    top_tools = scored[:limit]

    table = Table(title=f"Top {len(top_tools)} Tools")
    table.add_column("Rank", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Activity", justify="right", style="dim")
    table.add_column("Maint", justify="right", style="dim")
    table.add_column("Gov", justify="right", style="dim")
    table.add_column("License", justify="right", style="dim")
    table.add_column("Categories", style="dim")

    for rank, (tool, latest) in enumerate(top_tools, 1):
        color = _get_score_color(latest.overall_score)
        table.add_row(
            str(rank),
            _truncate(tool.name, 40),
            f"[{color}]{latest.overall_score}[/{color}]",
            _format_factor(latest.repo_activity_score),
            _format_factor(latest.maintenance_score),
            _format_factor(latest.open_governance_score),
            _format_factor(latest.license_score),
            ", ".join(tool.categories[:3]),
        )
    console.print(table)


@app.command()
def sources(ctx: typer.Context) -> None:
    """Show the status of every source."""
    services = _services(ctx)
    try:
        statuses = services.store.list_source_statuses()
    except ToolRepError as e:
        console.print(f"[red]Error reading source status:[/red] {e}")
        raise typer.Exit(1)

    if not statuses:
        console.print("[yellow]No source has run yet. Run 'toolrep collect' first.[/yellow]")
        return

    table = Table(title="Sources")
    table.add_column("Source", style="cyan")
    table.add_column("Status")
    table.add_column("Last Run", style="dim")
    table.add_column("Records", justify="right", style="magenta")
    table.add_column("Cursor", style="dim")
    table.add_column("Error", style="red")

    for status in statuses:
        color = "green" if status.status.value == "active" else "red"
        last_run = status.last_run_at.strftime("%Y-%m-%d %H:%M") if status.last_run_at else "Never"
        cursor = status.end_cursor if status.has_next_page else "-"
        table.add_row(
            status.name,
            f"[{color}]{status.status.value}[/{color}]",
            last_run,
            str(status.records_collected),
            cursor or "-",
            _truncate(status.error_message or "", 40),
        )
    console.print(table)


if __name__ == "__main__":
    app()
