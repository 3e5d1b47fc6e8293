"""Typer CLI — ``hroas analyze``, ``render``, ``ask``, ``validate`` and ``serve``."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console

from hroas.config import load_config

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="hroas",
    help="HigherROAS — turn a website, a budget and a goal into an ad strategy.",
    no_args_is_help=True,
)
console = Console()

REPORT_FILE = "strategy.json"
MARKDOWN_FILE = "strategy.md"
DASHBOARD_FILE = "dashboard.html"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config_or_exit(config: Path | None) -> "ServiceConfig":  # noqa: F821
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _load_report_or_exit(output: Path) -> "StrategyReport":  # noqa: F821
    from hroas.schemas.pipeline import StrategyReport

    report_path = output / REPORT_FILE
    if not report_path.exists():
        console.print(f"[red]No {REPORT_FILE} found in {output}[/]")
        console.print("Run [bold]hroas analyze[/] first — it saves strategy.json at the end.")
        raise typer.Exit(code=1)
    return StrategyReport.model_validate_json(report_path.read_text())


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to hroas.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a configuration file without calling any AI service."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Analysis:    {cfg.analysis_model} @ {cfg.analysis_base_url}")
    console.print(f"               key from ${cfg.analysis_api_key_env}")
    console.print(f"  Strategy:    {cfg.strategy_model} @ {cfg.strategy_base_url}")
    console.print(f"               key from ${cfg.strategy_api_key_env}")
    console.print(f"  Format:      {cfg.strategy_format}")
    console.print(f"  Temperature: {cfg.strategy_temperature}")
    console.print(f"  Page fetch:  {cfg.fetch_timeout}s timeout, {cfg.max_page_chars} chars")
    console.print(f"  Output dir:  {cfg.output_directory}")


@app.command()
def analyze(
    url: str = typer.Option(..., "--url", "-u", help="Website to analyze (https:// is added if missing)."),
    budget: float = typer.Option(..., "--budget", "-b", help="Monthly ad budget in dollars."),
    goal: str = typer.Option(..., "--goal", "-g", help="Marketing goal, e.g. 'More free-trial sign-ups'."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to hroas.yml (defaults are used if omitted)."),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory (overrides output_directory)."),
    no_stream: bool = typer.Option(False, "--no-stream", help="Request the strategy in one response instead of streaming."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the full pipeline with mock data (no API calls)."),
) -> None:
    """Run the analysis → strategy pipeline and write the dashboard.

    Example:

        hroas analyze --url outrank.so --budget 250 --goal "More trial sign-ups"
    """
    from hroas.schemas.strategy import StrategyRequest

    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)

    try:
        request = StrategyRequest(website_url=url, budget=budget, goal=goal)
    except ValidationError as exc:
        console.print(f"[red]Invalid request:[/] {exc}")
        raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")

    console.print(f"[bold]Building strategy for:[/] {request.website_url}\n")

    out_dir = output or Path(cfg.output_directory)
    try:
        asyncio.run(_run_pipeline(cfg, request, out_dir, stream=not no_stream, dry_run=dry_run))
    except Exception as exc:
        console.print(f"[red]Strategy generation failed:[/] {exc}")
        raise typer.Exit(code=1)


async def _run_pipeline(
    cfg: "ServiceConfig",  # noqa: F821
    request: "StrategyRequest",  # noqa: F821
    out_dir: Path,
    *,
    stream: bool = True,
    dry_run: bool = False,
) -> None:
    """Run the orchestrator pipeline and write its outputs."""
    from hroas.agents.orchestrator.agent import OrchestratorAgent
    from hroas.schemas.pipeline import StrategyReport
    from hroas.shared.progress import PipelineProgress

    orchestrator = OrchestratorAgent.for_request(cfg, request, dry_run=dry_run)

    with PipelineProgress(console=console) as progress:
        progress.print_phase("Generating strategy")
        result = await orchestrator.run(stream=stream, progress=progress)

    analysis = orchestrator.state.analysis
    report = StrategyReport(
        request=request,
        analysis=analysis.analysis if analysis else "",
        strategy=result,
    )
    _write_outputs(report, out_dir)


def _write_outputs(report: "StrategyReport", out_dir: Path) -> None:  # noqa: F821
    """Write strategy.json, strategy.md and dashboard.html for a report."""
    from hroas.output.dashboard import render_dashboard
    from hroas.output.markdown import render_strategy_markdown

    out_dir.mkdir(parents=True, exist_ok=True)

    json_path = out_dir / REPORT_FILE
    json_path.write_text(report.model_dump_json(by_alias=True, indent=2))
    console.print(f"[green]Strategy saved to:[/] {json_path}")

    md_path = out_dir / MARKDOWN_FILE
    md_path.write_text(render_strategy_markdown(report.strategy))
    console.print(f"[green]Markdown strategy written to:[/] {md_path}")

    html_path = out_dir / DASHBOARD_FILE
    html_path.write_text(
        render_dashboard(
            report.strategy,
            request=report.request,
            follow_ups=report.follow_ups,
            generated_at=report.generated_at,
        )
    )
    console.print(f"[green]HTML dashboard written to:[/] {html_path}")


@app.command()
def render(
    output: Path = typer.Option(..., "--output", "-o", help="Output directory from a previous run (must contain strategy.json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Re-render the Markdown strategy and HTML dashboard from a saved strategy.json.

    No API calls are made.

    Example:

        hroas render --output ./output
    """
    _setup_logging(verbose)
    report = _load_report_or_exit(output)
    console.print(f"[bold]Loading strategy from:[/] {output / REPORT_FILE}")
    _write_outputs(report, output)


@app.command()
def ask(
    question: str = typer.Option(..., "--question", "-q", help="Follow-up question about the strategy."),
    output: Path = typer.Option(..., "--output", "-o", help="Output directory from a previous run (must contain strategy.json)."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to hroas.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Answer with mock data (no API calls)."),
) -> None:
    """Ask a follow-up question about a saved strategy.

    The exchange is appended to strategy.json and the dashboard is re-rendered.
    """
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    report = _load_report_or_exit(output)

    try:
        exchange = asyncio.run(_run_follow_up(cfg, report, question, dry_run=dry_run))
    except Exception as exc:
        console.print(f"[red]Failed to get answer:[/] {exc}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold cyan]Q:[/] {exchange.question}\n")
    console.print(exchange.answer)
    console.print("")

    report.follow_ups.append(exchange)
    _write_outputs(report, output)


async def _run_follow_up(
    cfg: "ServiceConfig",  # noqa: F821
    report: "StrategyReport",  # noqa: F821
    question: str,
    *,
    dry_run: bool = False,
) -> "FollowUpExchange":  # noqa: F821
    from hroas.agents.follow_up.agent import FollowUpAgent
    from hroas.agents.orchestrator.agent import build_clients, build_dry_run_clients

    _, strategy_client = (build_dry_run_clients if dry_run else build_clients)(cfg)
    agent = FollowUpAgent(strategy_client, temperature=cfg.strategy_temperature)
    return await agent.run(question, report.strategy)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to hroas.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Serve mock strategies (no API calls)."),
) -> None:
    """Serve the strategy HTTP API (``/analyze-website`` and friends)."""
    import uvicorn

    from hroas.server.app import create_app

    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)

    if dry_run:
        console.print("[yellow]DRY-RUN mode — no API calls will be made.[/]\n")
    console.print(f"[bold]Serving HigherROAS API on[/] http://{host}:{port}")

    uvicorn.run(
        create_app(cfg, dry_run=dry_run),
        host=host,
        port=port,
        log_level="debug" if verbose else "info",
    )
