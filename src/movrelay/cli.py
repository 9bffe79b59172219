"""Command-line interface for Movie Relay."""

import asyncio
import sys
import time
from typing import Awaitable, Callable, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from movrelay.core.config import Settings, get_settings, log_settings
from movrelay.core.exceptions import MovieRelayError
from movrelay.core.logger import setup_logging
from movrelay.mock.server import MockServer
from movrelay.mock.stubs import jsonplaceholder_stubs
from movrelay.models.report import ScenarioReport
from movrelay.services.scenarios import ScenarioRunner

app = typer.Typer(
    name="movrelay",
    help="Movie Relay - read movies from TMDb, write them to a mocked JSONPlaceholder",
    add_completion=False,
)

# Force UTF-8 output on Windows
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")

console = Console(force_terminal=True)


def start_mock_server(settings: Settings) -> MockServer:
    """Start a mock server preloaded with the JSONPlaceholder stubs."""
    server = MockServer(
        host=settings.mock.host,
        port=settings.mock.port,
        startup_timeout=settings.mock.startup_timeout,
    )
    for rule in jsonplaceholder_stubs():
        server.stub_for(rule)
    return server.start()


def print_report(report: ScenarioReport) -> None:
    """Print scenario steps as a table."""
    table = Table(title=f"{report.scenario}: {report.movie.display_title}")
    table.add_column("Step", style="cyan")
    table.add_column("Method")
    table.add_column("Path")
    table.add_column("Status", justify="right")

    for step in report.steps:
        table.add_row(step.name, step.method, step.path, f"[green]{step.status_code}[/green]")

    console.print(table)
    if report.post_id is not None:
        console.print(f"Created post id: [bold]{report.post_id}[/bold]")
    if report.updated_title is not None:
        console.print(f"Updated title:   [bold]{report.updated_title}[/bold]")


def _run_scenario(
    scenario: Callable[[ScenarioRunner], Awaitable[ScenarioReport]],
) -> None:
    """Start the mock, run one scenario against it and report the outcome."""
    settings = get_settings()
    setup_logging(level=settings.log_level, log_dir=settings.log_path)

    async def _run() -> ScenarioReport:
        runner = ScenarioRunner.from_settings(settings, posts_base_url=server.base_url)
        try:
            return await scenario(runner)
        finally:
            await runner.close()

    try:
        server = start_mock_server(settings)
        try:
            report = asyncio.run(_run())
        finally:
            server.stop()
    except (MovieRelayError, httpx.HTTPError) as e:
        console.print(f"[red]✗ {type(e).__name__}:[/red] {e}")
        raise typer.Exit(code=1)

    print_report(report)
    console.print("[green]✓ Scenario passed[/green]")


@app.command()
def now_playing() -> None:
    """Fetch a now-playing movie, then POST, PATCH and DELETE it on the mock."""
    _run_scenario(lambda runner: runner.fetch_and_round_trip())


@app.command()
def search(
    query: str = typer.Argument("matrix", help="Search terms"),
) -> None:
    """Search TMDb and POST the first result to the mock."""
    _run_scenario(lambda runner: runner.search_and_post(query))


@app.command()
def serve_mock(
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Port to bind (default: settings, 0 = free port)"
    ),
) -> None:
    """Run the JSONPlaceholder mock server until interrupted."""
    settings = get_settings()
    setup_logging(level=settings.log_level, log_dir=settings.log_path)
    if port is not None:
        settings = settings.model_copy(update={"mock_port": port})

    try:
        server = start_mock_server(settings)
    except MovieRelayError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Mock server running on[/green] [cyan]{server.base_url}[/cyan]")
    for rule in server.stubs:
        console.print(f"  [dim]{rule.method:<6} {rule.pattern} -> {rule.status}[/dim]")
    console.print("Press Ctrl+C to stop")

    try:
        while server.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
        console.print(f"[dim]{len(server.requests)} requests served[/dim]")


@app.command()
def test_connection() -> None:
    """Check that the TMDb API key works."""
    from movrelay.clients.tmdb import TMDbClient

    settings = get_settings()
    setup_logging(level="WARNING")

    async def _test() -> int:
        client = TMDbClient.from_settings(settings)
        try:
            return len(await client.get_popular_movies(limit=1))
        finally:
            await client.close()

    try:
        count = asyncio.run(_test())
    except (MovieRelayError, httpx.HTTPError) as e:
        console.print(f"[red]✗ TMDb:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ TMDb:[/green] Connected ({count} movie fetched)")


@app.command()
def show_config() -> None:
    """Log the effective configuration (secrets masked)."""
    settings = get_settings()
    setup_logging(level="INFO")
    log_settings(settings)


@app.command()
def version() -> None:
    """Show version information."""
    from movrelay import __version__

    console.print(f"Movie Relay v{__version__}")


if __name__ == "__main__":
    app()
