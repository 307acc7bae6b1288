"""Console sink — one structured ``key=value`` line per snapshot.

Output goes through a Rich ``Console``.  ``silent=True`` suppresses
output entirely; the sink still accepts snapshots so callers never need
to special-case silent mode.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.text import Text

from simwatch.models.snapshot import Snapshot
from simwatch.routing.sinks._formatting import NOT_APPLICABLE, snapshot_fields

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Prints snapshot progress lines to the terminal.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    silent:
        When true, nothing is printed.
    """

    def __init__(self, console: Console | None = None, *, silent: bool = False) -> None:
        self.console = console or Console()
        self.silent = silent

    @property
    def sink_name(self) -> str:
        return "console"

    def accept(self, snapshot: Snapshot, timeout: float | None = None) -> None:
        if self.silent:
            return
        self.console.print(self.format_line(snapshot))

    @staticmethod
    def format_line(snapshot: Snapshot) -> Text:
        """Build the styled ``key=value`` progress line."""
        line = Text()
        for i, (key, value) in enumerate(snapshot_fields(snapshot).items()):
            if i:
                line.append(" ")
            style = "dim" if value == NOT_APPLICABLE else "bold"
            if " " in value:
                value = f'"{value}"'
            line.append(f"{key}=", style="dim")
            line.append(value, style=style)
        return line
