"""``simwatch demo`` — watch a synthetic fast-forward run.

Generates progress and fault events for a simulated timeline starting now
and runs them through the same orchestrator as ``replay``.  Press Ctrl+C
to exercise the abort path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import typer
from rich.console import Console
from rich.panel import Panel

from simwatch.cli.commands import apply_overrides
from simwatch.cli.runner import watch
from simwatch.config import settings as default_settings
from simwatch.engine.synthetic import synthetic_events

console = Console()


def demo_cmd(
    updates: int = typer.Option(
        100_000, "--updates", "-u", min=1, help="Total updates to simulate."
    ),
    hours: float = typer.Option(
        24.0, "--hours", "-H", min=0.01, help="Length of the simulated timeline."
    ),
    ticks: int = typer.Option(
        20, "--ticks", "-t", min=1, help="Number of progress reports."
    ),
    faults: int = typer.Option(
        4, "--faults", "-f", min=0, help="Emit a fault every N ticks (0 = never)."
    ),
    tick: float = typer.Option(
        0.25, "--tick", min=0.0, help="Wall-clock seconds between progress reports."
    ),
    silent: bool = typer.Option(
        False, "--silent", help="Suppress console progress output."
    ),
) -> None:
    """Run a synthetic fast-forward simulation through the progress monitor."""
    start = datetime.now(timezone.utc).replace(microsecond=0)
    span = timedelta(hours=hours)
    run_settings = apply_overrides(
        default_settings,
        sim_from=start,
        sim_to=start + span,
        silent=silent or None,
    )

    if not run_settings.silent:
        console.print(
            Panel(
                f"[bold]simwatch demo[/bold]\n\n"
                f"Fast-forwarding {hours:g} simulated hours, {updates} updates, "
                f"{ticks} progress reports.\nPress Ctrl+C to abort.",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    events = synthetic_events(updates, span, ticks=ticks, fault_every=faults)
    code = watch(events, run_settings, console, pace=tick)
    raise typer.Exit(code=code)
