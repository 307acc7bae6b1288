"""Run orchestrator — the single consumer of the engine's event stream.

The RunOrchestrator owns everything mutable about a watched run: the run
state, the fault log, and the last projected snapshot.  Events from the
engine (and abort triggers from signals or crashes) are pushed onto one
queue and handled strictly in arrival order by ``run()``.

Lifecycle
---------
1. RUNNING: metrics are projected and delivered; faults are recorded.
2. An abort trigger moves the run to STOPPING, asks the engine to stop
   once, and waits up to ``stop_ack_timeout`` seconds for the engine's
   acknowledgement.
3. The engine's ``completed`` event moves a RUNNING run to ENDED.
4. Either way, the final snapshot is delivered with bounded retries and
   ``run()`` returns exit code 0.
"""

from __future__ import annotations

import logging
import queue
import signal
import time
from collections.abc import Callable
from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from simwatch.core.fault_log import FaultLog
from simwatch.core.projector import project
from simwatch.core.run_state import RunStateMachine
from simwatch.engine import EngineControl
from simwatch.models.events import EngineEvent, EngineEventKind, ProgressMetricsEvent
from simwatch.models.run import RunState
from simwatch.models.snapshot import RunBounds, Snapshot
from simwatch.routing.dispatcher import DeliveryResult, NotificationDispatcher

logger = logging.getLogger(__name__)

DEFAULT_STOP_ACK_TIMEOUT = 5.0
EXIT_OK = 0

# How often the loop wakes while RUNNING with nothing queued.
_POLL_INTERVAL = 0.5


class AbortRequest(BaseModel):
    """Internal queue item: an operator signal or unrecoverable fault."""

    model_config = ConfigDict(frozen=True)

    reason: str


_QueueItem = Union[EngineEvent, AbortRequest]


class RunOrchestrator:
    """Drives projection, fault history and notifications for one run.

    Parameters
    ----------
    dispatcher:
        Delivers snapshots to the console and external sinks.
    bounds:
        Simulated start/end of the run.  Defaults to an open-ended run.
    engine:
        Engine control surface.  May also be attached later with
        ``attach_engine`` (engines usually need ``publish`` first).
    fault_log:
        Fault history.  A fresh 10-entry log is created if not provided.
    stop_ack_timeout:
        Seconds to wait for ``stop-acknowledged`` after an abort.
    clock:
        Monotonic clock the stop deadline is measured on.  Injectable for
        tests.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        bounds: RunBounds | None = None,
        *,
        engine: EngineControl | None = None,
        fault_log: FaultLog | None = None,
        stop_ack_timeout: float = DEFAULT_STOP_ACK_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._dispatcher = dispatcher
        self._bounds = bounds or RunBounds()
        self._engine = engine
        self._fault_log = fault_log if fault_log is not None else FaultLog()
        self._stop_ack_timeout = max(stop_ack_timeout, 0.0)
        self._clock = clock

        self._queue: queue.SimpleQueue[_QueueItem] = queue.SimpleQueue()
        self._machine = RunStateMachine()
        self._last_event: ProgressMetricsEvent | None = None
        self._last_snapshot: Snapshot | None = None
        self._stop_requested = False
        self._stop_deadline: float | None = None
        self._finishing = False
        self._previous_handlers: dict[int, Any] = {}

        self.final_result: DeliveryResult | None = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach_engine(self, engine: EngineControl) -> None:
        self._engine = engine

    def install_signal_handlers(
        self, signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)
    ) -> None:
        """Map operator signals to the abort trigger.  Main thread only."""
        for signum in signals:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _on_signal(self, signum: int, frame: Any) -> None:
        self.abort(f"received {signal.Signals(signum).name}")

    # ------------------------------------------------------------------
    # Producers (thread-safe)
    # ------------------------------------------------------------------

    def publish(self, event: EngineEvent) -> None:
        """Queue an engine event for sequential handling."""
        self._queue.put(event)

    def abort(self, reason: str) -> None:
        """Queue an abort trigger.  Safe to call from signal handlers.

        An abort that arrives while the final report is being sent cuts
        the remaining delivery attempts short.
        """
        if self._finishing:
            self._dispatcher.cancel_final_delivery()
        self._queue.put(AbortRequest(reason=reason))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._machine.state

    @property
    def state_machine(self) -> RunStateMachine:
        return self._machine

    @property
    def last_snapshot(self) -> Snapshot | None:
        return self._last_snapshot

    @property
    def fault_log(self) -> FaultLog:
        return self._fault_log

    @property
    def bounds(self) -> RunBounds:
        return self._bounds

    # ------------------------------------------------------------------
    # Dispatch loop
    # ------------------------------------------------------------------

    def run(self) -> int:
        """Handle events until the run ends, then flush the final report.

        Returns the process exit code (always 0).
        """
        logger.info(
            "Watching run (bounds %s -> %s)",
            self._bounds.from_.isoformat() if self._bounds.from_ else "open",
            self._bounds.to.isoformat() if self._bounds.to else "open",
        )

        while True:
            try:
                item = self._queue.get(timeout=self._next_timeout())
            except queue.Empty:
                if self._machine.state is RunState.STOPPING:
                    self._warn_unacknowledged()
                    break
                continue

            try:
                done = self._handle(item)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unrecoverable error while handling %r", item)
                done = self._begin_stop(f"unrecoverable fault: {exc}")
            if done:
                break
            # an engine that ignores the stop request may keep the queue busy
            if self._stop_deadline is not None and self._clock() >= self._stop_deadline:
                self._warn_unacknowledged()
                break

        return self._finish()

    def _warn_unacknowledged(self) -> None:
        logger.warning(
            "Engine did not acknowledge stop within %.1fs; "
            "sending final report anyway",
            self._stop_ack_timeout,
        )

    def _next_timeout(self) -> float:
        if self._stop_deadline is None:
            return _POLL_INTERVAL
        return max(self._stop_deadline - self._clock(), 0.0)

    def _handle(self, item: _QueueItem) -> bool:
        """Handle one queue item.  Returns ``True`` when the loop should end."""
        if isinstance(item, AbortRequest):
            return self._begin_stop(item.reason)

        kind = item.kind
        if kind is EngineEventKind.PROGRESS_METRICS:
            self._on_metrics(item)
        elif kind is EngineEventKind.FAULT:
            self._fault_log.record(item.detail)
            logger.warning("Engine fault: %s", item.detail)
        elif kind is EngineEventKind.INFORMATIONAL:
            logger.info("Engine: %s", item.message)
        elif kind is EngineEventKind.STOP_ACKNOWLEDGED:
            if self._machine.state is RunState.RUNNING:
                self._machine.transition(RunState.STOPPING, "engine stopped unprompted")
            logger.info("Engine acknowledged stop")
            return True
        elif kind is EngineEventKind.COMPLETED:
            if self._machine.state is RunState.RUNNING:
                self._machine.transition(RunState.ENDED, "engine completed")
            else:
                logger.info("Engine completed while %s", self._machine.state.value)
            return True
        else:
            logger.debug("Ignoring unknown engine event %r", getattr(item, "raw_kind", kind))
        return False

    def _on_metrics(self, event: ProgressMetricsEvent) -> None:
        snapshot = project(event, self._bounds, self._fault_log.snapshot())
        self._last_event = event
        self._last_snapshot = snapshot
        self._dispatcher.deliver(snapshot)

    def _begin_stop(self, reason: str) -> bool:
        if self._machine.state is not RunState.RUNNING:
            logger.debug("Abort (%s) ignored; run already %s", reason, self._machine.state.value)
            return False

        self._machine.transition(RunState.STOPPING, reason)
        logger.warning("Stopping run: %s", reason)

        if self._engine is None or self._stop_ack_timeout == 0:
            return True

        if not self._stop_requested:
            self._stop_requested = True
            try:
                self._engine.request_stop()
            except Exception:  # noqa: BLE001
                logger.exception("Engine rejected stop request")
                return True
        self._stop_deadline = self._clock() + self._stop_ack_timeout
        return False

    def _finish(self) -> int:
        self._finishing = True
        self._dispatcher.close()

        final = self._last_snapshot
        if self._last_event is not None:
            final = project(self._last_event, self._bounds, self._fault_log.snapshot())
            self._last_snapshot = final

        self.final_result = self._dispatcher.deliver_external_with_retry(final)
        logger.info(
            "Run %s; final report %s",
            self._machine.state.value,
            "delivered" if self.final_result.delivered else "NOT delivered",
        )
        return EXIT_OK
