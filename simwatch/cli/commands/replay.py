"""``simwatch replay EVENTS`` — watch a recorded engine event log.

The log is JSON lines, one engine event per line, e.g.::

    {"kind": "progress-metrics", "updatesRequested": 1000, "elapsedTime": 10.0, ...}
    {"kind": "fault", "detail": "device 42 timed out"}
    {"kind": "completed"}
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from simwatch.cli.commands import apply_overrides
from simwatch.cli.runner import watch
from simwatch.config import settings as default_settings
from simwatch.engine.replay import load_event_log
from simwatch.models.events import EventDecodeError

console = Console()


def replay_cmd(
    events_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON-lines engine event log.",
    ),
    pace: float = typer.Option(
        0.0,
        "--pace",
        "-p",
        min=0.0,
        help="Seconds between replayed events (0 = as fast as possible).",
    ),
    sim_from: Optional[datetime] = typer.Option(
        None, "--from", help="Simulated start instant."
    ),
    sim_to: Optional[datetime] = typer.Option(
        None, "--to", help="Simulated end instant (omit for open-ended)."
    ),
    sink_endpoint: Optional[str] = typer.Option(
        None, "--sink-endpoint", help="External report endpoint URL."
    ),
    sink_name: Optional[str] = typer.Option(
        None, "--sink-name", help="External report stream name."
    ),
    sink_token: Optional[str] = typer.Option(
        None, "--sink-token", help="External report access token."
    ),
    silent: Optional[bool] = typer.Option(
        None, "--silent/--no-silent", help="Suppress console progress output."
    ),
    stop_ack_timeout: Optional[float] = typer.Option(
        None,
        "--stop-ack-timeout",
        min=0.0,
        help="Seconds to wait for the engine to acknowledge a stop.",
    ),
) -> None:
    """Replay an engine event log through the progress monitor."""
    try:
        events = load_event_log(events_path)
    except EventDecodeError as exc:
        console.print(f"[bold red]Cannot read event log:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        run_settings = apply_overrides(
            default_settings,
            sim_from=sim_from,
            sim_to=sim_to,
            sink_endpoint=sink_endpoint,
            sink_name=sink_name,
            sink_token=sink_token,
            silent=silent,
            stop_ack_timeout_seconds=stop_ack_timeout,
        )
        run_settings.run_bounds()
    except ValidationError as exc:
        console.print(f"[bold red]Invalid run bounds:[/bold red] {exc}")
        raise typer.Exit(code=2)

    code = watch(events, run_settings, console, pace=pace)
    raise typer.Exit(code=code)
