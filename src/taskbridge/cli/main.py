"""taskbridge CLI — the main entry point."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from taskbridge import __version__

app = typer.Typer(
    name="taskbridge",
    help="Telegram front-end for OpenServ task execution.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    # httpx logs every request at INFO; the poll loop would drown everything else
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback(invoke_without_command=True)
def main_callback(
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    if version:
        console.print(f"taskbridge [dim]v{__version__}[/dim]")
        raise typer.Exit()
    _configure_logging(verbose)


def _load_settings(telegram: bool = True):
    """Load settings and exit with code 1 if required values are missing."""
    from taskbridge.config.settings import get_settings

    settings = get_settings()
    missing = settings.missing_required(telegram=telegram)
    if missing:
        console.print(
            f"[red]Missing required environment variables:[/red] {', '.join(missing)}"
        )
        raise typer.Exit(1)
    return settings


@app.command()
def start():
    """Start the Telegram bot and the HTTP server."""
    import uvicorn

    from taskbridge.server.app import create_app

    settings = _load_settings()
    _show_status(settings)
    console.print("[green]Bot is running![/green] Send /start to begin.")

    # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown,
    # which stops Telegram polling and aborts in-flight questions.
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level,
        access_log=False,
    )
    console.print("[dim]Bot stopped.[/dim]")


@app.command()
def ask(question: str = typer.Argument(..., help="The question to submit")):
    """Submit one question from the terminal and wait for the answer."""
    settings = _load_settings(telegram=False)

    try:
        response = asyncio.run(_ask(settings, question))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled. The task may still be processing.[/yellow]")
        raise typer.Exit(130)

    if response.error or response.failed:
        console.print(f"[red]{response.content}[/red]")
        if response.error:
            console.print(f"[dim]{response.error}[/dim]")
        raise typer.Exit(1)
    if response.timed_out:
        console.print(f"[yellow]{response.content}[/yellow]")
        raise typer.Exit(2)
    console.print(response.content)


async def _ask(settings, question: str):
    from taskbridge.core import AskService
    from taskbridge.executor import OpenServClient

    async with OpenServClient(
        api_key=settings.executor.api_key,
        api_url=settings.executor.api_url,
        timeout=settings.executor.request_timeout_seconds,
    ) as executor:
        service = AskService.from_settings(executor, settings)
        with console.status("[bold blue]Waiting for the task...[/bold blue]", spinner="dots"):
            return await service.ask(question)


@app.command()
def status():
    """Show current configuration."""
    from taskbridge.config.settings import get_settings

    _show_status(get_settings())


def _show_status(settings) -> None:
    """Print current config summary."""
    missing = settings.missing_required()
    console.print()
    console.print(f"  [bold]Bot:[/bold]        {settings.bot_name}")
    console.print(f"  [bold]Executor:[/bold]   {settings.executor.api_url}")
    console.print(f"  [bold]Workspace:[/bold]  {settings.executor.workspace_id or '[dim]not set[/dim]'}")
    console.print(f"  [bold]Agent:[/bold]      {settings.executor.agent_id or '[dim]not set[/dim]'}")
    console.print(
        f"  [bold]Tracking:[/bold]   {settings.tracking.timeout_seconds:.0f}s budget, "
        f"poll every {settings.tracking.poll_interval_seconds:.0f}s"
    )
    mode = "webhook" if settings.channels.telegram_webhook_url else "polling"
    telegram = f"enabled ({mode})" if settings.channels.telegram_enabled else "disabled"
    console.print(f"  [bold]Telegram:[/bold]   {telegram}")
    console.print(f"  [bold]Server:[/bold]     http://{settings.server.host}:{settings.server.port}")
    if missing:
        console.print(f"  [bold]Missing:[/bold]    [red]{', '.join(missing)}[/red]")
    console.print()


if __name__ == "__main__":
    app()
