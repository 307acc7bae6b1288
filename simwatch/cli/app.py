"""Main Typer application — imports and registers all CLI commands.

Entry point: ``simwatch`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from simwatch import __version__
from simwatch.cli.commands.demo import demo_cmd
from simwatch.cli.commands.replay import replay_cmd
from simwatch.cli.runner import configure_logging
from simwatch.config import settings

app = typer.Typer(
    name="simwatch",
    help="simwatch: progress monitoring and reporting for fast-forward simulations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="replay", help="Replay a recorded engine event log.")(replay_cmd)
app.command(name="demo", help="Watch a synthetic fast-forward run.")(demo_cmd)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (defaults to SIMWATCH_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging before any subcommand runs."""
    configure_logging(log_level or settings.log_level, Console(stderr=True))


@app.command(name="version", help="Print the simwatch version.")
def version_cmd() -> None:
    typer.echo(f"simwatch {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
