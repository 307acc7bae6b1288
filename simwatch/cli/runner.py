"""Shared wiring for CLI commands — builds and runs a watched session.

Every command ends up here: settings become a dispatcher, a fault log and
an orchestrator; the engine stand-in is attached; the orchestrator's exit
code is returned after the summary panel is printed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rich.console import Console
from rich.logging import RichHandler

from simwatch.config import WatchSettings, build_external_sink
from simwatch.core.fault_log import FaultLog
from simwatch.core.orchestrator import RunOrchestrator
from simwatch.engine.replay import ReplayEngine
from simwatch.models.events import EngineEvent
from simwatch.monitor.renderer import SnapshotRenderer
from simwatch.routing.dispatcher import NotificationDispatcher
from simwatch.routing.sinks.console import ConsoleSink

logger = logging.getLogger(__name__)


def configure_logging(level: str, console: Console | None = None) -> None:
    """Route stdlib logging through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_orchestrator(
    settings: WatchSettings, console: Console
) -> RunOrchestrator:
    dispatcher = NotificationDispatcher(
        console_sink=ConsoleSink(console, silent=settings.silent),
        external_sink=build_external_sink(settings),
        max_attempts=settings.final_report_attempts,
        interval=settings.final_report_interval_seconds,
        attempt_timeout=settings.final_report_attempt_timeout_seconds,
    )
    return RunOrchestrator(
        dispatcher,
        settings.run_bounds(),
        fault_log=FaultLog(settings.fault_log_capacity),
        stop_ack_timeout=settings.stop_ack_timeout_seconds,
    )


def watch(
    events: Iterable[EngineEvent],
    settings: WatchSettings,
    console: Console,
    *,
    pace: float = 0.0,
) -> int:
    """Play *events* through a fresh orchestrator and return its exit code."""
    orchestrator = build_orchestrator(settings, console)
    engine = ReplayEngine(
        events, orchestrator.publish, pace=pace, on_crash=orchestrator.abort
    )
    orchestrator.attach_engine(engine)
    orchestrator.install_signal_handlers()
    try:
        engine.start()
        code = orchestrator.run()
    finally:
        orchestrator.restore_signal_handlers()

    if orchestrator.last_snapshot is not None and not settings.silent:
        result = orchestrator.final_result
        SnapshotRenderer(console).print_snapshot(
            orchestrator.last_snapshot,
            state=orchestrator.state,
            # zero attempts means no external sink was configured
            delivery=result if result is not None and result.attempts else None,
        )
    return code
