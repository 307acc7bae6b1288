"""Rich terminal renderer for progress snapshots.

Turns a ``Snapshot`` into a Rich Panel: a metrics table on top and the
recent fault history below.  Used for the end-of-run summary.

Color scheme
------------
- bold   : computed value
- dim    : not applicable (N/A)
- red    : fault entries, non-zero error rate
- green  : final report delivered
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from simwatch.models.run import RunState
from simwatch.routing.sinks._formatting import NOT_APPLICABLE, snapshot_fields

if TYPE_CHECKING:
    from simwatch.models.snapshot import Snapshot
    from simwatch.routing.dispatcher import DeliveryResult


_FIELD_LABELS: dict[str, str] = {
    "requests": "Requests",
    "elapsed": "Elapsed",
    "simulated_elapsed": "Simulated elapsed",
    "throughput": "Throughput (req/s)",
    "delayed_pct": "Delayed (%)",
    "error_pct": "Errors (%)",
    "pending": "Projected time left",
    "simulated_pending": "Simulated time left",
    "faults": "Recent faults",
}

_STATE_STYLES: dict[RunState, str] = {
    RunState.RUNNING: "bold yellow",
    RunState.STOPPING: "bold red",
    RunState.ENDED: "bold green",
}


class SnapshotRenderer:
    """Renders ``Snapshot`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_snapshot(
        self,
        snapshot: Snapshot,
        *,
        state: RunState | None = None,
        delivery: DeliveryResult | None = None,
    ) -> Panel:
        """Render a snapshot as a Panel with metrics and fault tables."""
        parts: list[Table | Text] = [self._build_metrics_table(snapshot)]
        if snapshot.faults:
            parts.append(Text(""))
            parts.append(self._build_fault_table(snapshot))

        footer: list[str] = []
        if state is not None:
            style = _STATE_STYLES.get(state, "")
            footer.append(f"[bold]State:[/bold] [{style}]{state.value}[/{style}]")
        if delivery is not None:
            if delivery.delivered:
                footer.append(
                    f"[bold]Final report:[/bold] [green]delivered[/green] "
                    f"({delivery.attempts} attempt(s))"
                )
            else:
                footer.append(
                    f"[bold]Final report:[/bold] [bold red]failed[/bold red] "
                    f"after {delivery.attempts} attempt(s)"
                )
        if footer:
            parts.append(Text(""))
            parts.append(Text.from_markup("  |  ".join(footer)))

        return Panel(
            Group(*parts),
            title="[bold]simwatch progress[/bold]",
            subtitle=f"Taken at {snapshot.taken_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style="blue",
            padding=(1, 2),
        )

    def _build_metrics_table(self, snapshot: Snapshot) -> Table:
        table = Table(show_header=False, expand=True, pad_edge=True)
        table.add_column("Metric", style="cyan", min_width=22)
        table.add_column("Value", justify="right")

        fields = snapshot_fields(snapshot)
        for key, value in fields.items():
            if value == NOT_APPLICABLE:
                shown = f"[dim]{value}[/dim]"
            elif key == "error_pct" and snapshot.error_rate_pct:
                shown = f"[red]{value}[/red]"
            else:
                shown = f"[bold]{value}[/bold]"
            table.add_row(_FIELD_LABELS.get(key, key), shown)
        return table

    def _build_fault_table(self, snapshot: Snapshot) -> Table:
        table = Table(
            title="Recent faults",
            show_header=True,
            header_style="bold red",
            expand=True,
        )
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Time", width=10)
        table.add_column("Detail")
        for i, fault in enumerate(snapshot.faults, start=1):
            table.add_row(
                str(i),
                f"[dim]{fault.timestamp.strftime('%H:%M:%S')}[/dim]",
                Text(fault.detail, style="red"),
            )
        return table

    def print_snapshot(self, snapshot: Snapshot, **kwargs) -> None:
        """Print a single snapshot to the console."""
        self.console.print(self.render_snapshot(snapshot, **kwargs))
