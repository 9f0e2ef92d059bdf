"""
Typer application for ticktock.

Commands:
    ticktock run      Run a heartbeat scheduler for a fixed duration
    ticktock config   Show the resolved settings
"""

from __future__ import annotations

import json
import threading

import typer
from rich.console import Console
from rich.table import Table

from ticktock.enums import ErrorHandlingPolicy
from ticktock.errors import TickTockError
from ticktock.logging import configure_logging
from ticktock.scheduler import TickScheduler
from ticktock.settings import get_settings

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="ticktock",
    help="ticktock: periodic callback scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from ticktock import __version__

        typer.echo(f"ticktock {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """ticktock CLI: run and inspect tick schedulers."""


class _Heartbeat:
    """Tick handler that counts invocations and fails on every Nth one."""

    def __init__(self, fail_every: int, quiet: bool) -> None:
        self.fail_every = fail_every
        self.quiet = quiet
        self.count = 0

    def __call__(self) -> None:
        self.count += 1
        if self.fail_every and self.count % self.fail_every == 0:
            raise RuntimeError(f"simulated failure on tick {self.count}")
        if not self.quiet:
            console.print(f"[green]tick[/green] {self.count}")


@app.command("run")
def run(
    interval: float | None = typer.Option(None, "--interval", "-i", help="Seconds between ticks."),
    policy: ErrorHandlingPolicy | None = typer.Option(None, "--policy", "-p", help="Error-handling policy."),
    duration: float = typer.Option(5.0, "--duration", "-d", min=0.0, help="Seconds to run before disposing."),
    fail_every: int = typer.Option(0, "--fail-every", min=0, help="Fail every Nth tick (0 = never)."),
    log_level: str | None = typer.Option(None, "--log-level", help="Override TICKTOCK_LOG_LEVEL."),
    json_out: bool = typer.Option(False, "--json", help="Print the final health report as JSON."),
) -> None:
    """Run a heartbeat scheduler and report its health."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format == "json",
    )

    try:
        scheduler = TickScheduler(
            interval if interval is not None else settings.interval_seconds,
            policy=policy or settings.policy,
            name=settings.name,
            dispose_timeout=settings.dispose_timeout_seconds,
        )
    except TickTockError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e

    heartbeat = _Heartbeat(fail_every, quiet=json_out)
    scheduler.on_tick(heartbeat)
    if not json_out:
        scheduler.on_error(lambda exc: console.print(f"[red]error[/red] {exc}"))

    done = threading.Event()
    with scheduler:
        scheduler.start()
        try:
            done.wait(duration)
        except KeyboardInterrupt:
            err_console.print("[yellow]Interrupted[/yellow]")
        report = scheduler.health()

    if json_out:
        console.print_json(json.dumps(report, default=str))
        return

    table = Table(title="Scheduler health", show_lines=False, pad_edge=False)
    table.add_column("Field")
    table.add_column("Value", overflow="fold")
    for key, value in report.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("config")
def show_config(
    json_out: bool = typer.Option(False, "--json", help="Print settings as JSON."),
) -> None:
    """Show the resolved settings (environment and .env applied)."""
    settings = get_settings()

    if json_out:
        console.print_json(settings.model_dump_json())
        return

    for key, value in settings.model_dump(mode="json").items():
        console.print(f"  [cyan]TICKTOCK_{key.upper()}[/cyan]: {value}")


if __name__ == "__main__":
    app()
