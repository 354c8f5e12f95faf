"""CLI interface for storefront audits."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from storefront_audit.categorization.classifier import PlatformClassifier, extract_resource_urls
from storefront_audit.categorization.signals import load_signals
from storefront_audit.errors import AuditError, AuditValidationError, validate_target_url
from storefront_audit.models.model_audit import AuditResult, AuditStatus
from storefront_audit.pipeline import build_orchestrator
from storefront_audit.runner import execute_run
from storefront_audit.scrapers.basic_fetch import BasicFetcher, extract_links
from storefront_audit.settings import AuditSettings, load_settings
from storefront_audit.storage.file_manager import FileManager

app = typer.Typer(
    name="storefront-audit",
    help="Storefront Audit - Score mobile e-commerce storefronts across 10 categories",
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _get_score_color(score: float, scale: float = 100) -> str:
    """Get color for score display."""
    ratio = score / scale
    if ratio >= 0.7:
        return "green"
    elif ratio >= 0.5:
        return "yellow"
    else:
        return "red"


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _settings(data_dir: Path | None) -> AuditSettings:
    overrides = {"data_dir": data_dir} if data_dir else {}
    try:
        return load_settings(**overrides)
    except AuditValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def _print_result(result: AuditResult) -> None:
    """Render category scores and the headline figure."""
    table = Table(title=f"Audit of {result.run.url}")
    table.add_column("Category", style="cyan")
    table.add_column("Source", style="blue")
    table.add_column("Score", justify="right")
    table.add_column("Top improvement", style="dim")

    for category in result.categories:
        color = _get_score_color(category.score, scale=10)
        source = result.score_sources.get(category.id)
        table.add_row(
            category.id.value,
            source.value if source else "-",
            f"[{color}]{category.score:g}[/{color}]",
            _truncate(category.insights[0], 60) if category.insights else "",
        )

    console.print(table)

    color = _get_score_color(result.total_score)
    console.print(
        f"\n[bold]Total:[/bold] [{color}]{result.total_score}/100[/{color}]  "
        f"[bold]Grade:[/bold] {result.grade}  "
        f"[bold]Platform:[/bold] {result.platform.platform.value} ({result.platform.confidence:.2f})  "
        f"[dim]grader={result.grader}[/dim]"
    )
    if result.expert_summary and result.expert_summary.headline:
        console.print(f"[italic]{result.expert_summary.headline}[/italic]")
    if result.degraded_stages:
        console.print(f"[yellow]Degraded stages:[/yellow] {', '.join(result.degraded_stages)}")
    if result.export and result.export.report:
        console.print(f"[dim]Report: {result.export.report}[/dim]")


@app.command()
def run(
    url: str = typer.Argument(..., help="Storefront URL to audit"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Override the data directory"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Audit a storefront and print its category scores."""
    _configure_logging(verbose)
    settings = _settings(data_dir)
    store = FileManager(settings.data_dir)

    async def run_audit() -> AuditResult:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
        ) as progress:
            task = progress.add_task("Starting...", total=100)

            def on_progress(percent: int, message: str):
                progress.update(task, completed=percent, description=message)

            orchestrator = build_orchestrator(settings, run_store=store, progress_callback=on_progress)
            try:
                return await execute_run(url, orchestrator, store, settings=settings)
            finally:
                await orchestrator.aclose()

    try:
        result = asyncio.run(run_audit())
    except AuditValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except AuditError as e:
        console.print(f"[red]Audit failed:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(result.model_dump_json())
        return
    _print_result(result)
    console.print(f"\n[dim]Run id: {result.run.id}[/dim]")


@app.command()
def show(
    run_id: str = typer.Argument(..., help="Run id"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Override the data directory"),
) -> None:
    """Show a stored run and its result."""
    settings = _settings(data_dir)
    store = FileManager(settings.data_dir)

    audit_run = store.load_run(run_id)
    if audit_run is None:
        console.print(f"[red]Error:[/red] Run '{run_id}' not found")
        raise typer.Exit(1)

    if audit_run.status == AuditStatus.FAILED:
        console.print(f"[red]Run {run_id} failed:[/red] {audit_run.error}")
        return

    result = store.load_result(run_id)
    if result is None:
        console.print(f"[yellow]Run {run_id} is {audit_run.status.value} ({audit_run.progress}%)[/yellow]")
        return
    _print_result(result)


@app.command(name="list")
def list_runs(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum runs to show"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Override the data directory"),
) -> None:
    """List stored runs, newest first."""
    settings = _settings(data_dir)
    runs = FileManager(settings.data_dir).list_runs()[:limit]

    if not runs:
        console.print("[yellow]No runs found[/yellow]")
        return

    table = Table(title=f"Audit Runs ({len(runs)})")
    table.add_column("Run ID", style="cyan")
    table.add_column("URL", style="blue")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Started", style="dim")

    status_colors = {
        AuditStatus.COMPLETED: "green",
        AuditStatus.FAILED: "red",
        AuditStatus.PROCESSING: "yellow",
        AuditStatus.PENDING: "dim",
    }
    for audit_run in runs:
        color = status_colors[audit_run.status]
        score = str(audit_run.total_score) if audit_run.total_score is not None else "-"
        table.add_row(
            audit_run.id,
            _truncate(audit_run.url, 40),
            f"[{color}]{audit_run.status.value}[/{color}]",
            score,
            audit_run.started_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def detect(
    url: str = typer.Argument(..., help="Storefront URL"),
    html_file: Path = typer.Option(None, "--html", help="Classify this HTML file instead of fetching"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Detect the commerce platform of a storefront."""
    _configure_logging(verbose)
    settings = _settings(None)

    try:
        target = validate_target_url(url)
        classifier = PlatformClassifier(load_signals(settings.platform_signals_path))
    except AuditValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    headers: dict[str, str] = {}
    cookies: list[str] = []
    if html_file:
        if not html_file.exists():
            console.print(f"[red]Error:[/red] File not found: {html_file}")
            raise typer.Exit(1)
        html = html_file.read_text(encoding="utf-8", errors="replace")
        links = extract_links(html, target)
    else:
        fetched = asyncio.run(BasicFetcher(timeout=settings.fetch_timeout).fetch(target))
        if not fetched.success:
            console.print(f"[yellow]Fetch failed ({fetched.error}), classifying by URL only[/yellow]")
        html = fetched.html
        links = fetched.links
        headers = fetched.headers
        cookies = fetched.cookies

    detection = classifier.classify(
        target,
        html=html,
        resource_urls=extract_resource_urls(html, links),
        headers=headers,
        cookies=cookies,
    )

    console.print(f"[bold]Platform:[/bold] {detection.platform.value}")
    console.print(f"[bold]Confidence:[/bold] {detection.confidence:.2f}")
    if detection.signals:
        console.print("[bold]Signals:[/bold]")
        for signal in detection.signals:
            console.print(f"  [dim]-[/dim] {signal}")


if __name__ == "__main__":
    app()
