"""Replay engine — plays a recorded or generated event stream back in-process.

Events are published from a background thread, optionally paced.  A stop
request ends playback and is answered with ``stop-acknowledged``; running
out of events ends with ``completed`` unless the stream already carried
a terminal event.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from simwatch.models.events import (
    CompletedEvent,
    EngineEvent,
    EngineEventKind,
    EventDecodeError,
    StopAcknowledgedEvent,
    decode_event,
)

logger = logging.getLogger(__name__)

_TERMINAL_KINDS = {EngineEventKind.COMPLETED, EngineEventKind.STOP_ACKNOWLEDGED}


def load_event_log(path: Path | str) -> list[EngineEvent]:
    """Read a JSON-lines engine event log.

    Blank lines are skipped.

    Raises
    ------
    EventDecodeError
        If a line cannot be decoded; the message names the line number.
    """
    events: list[EngineEvent] = []
    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                events.append(decode_event(line))
            except EventDecodeError as exc:
                raise EventDecodeError(f"{path}:{lineno}: {exc}") from exc
    return events


class ReplayEngine:
    """Publishes events from *events* on a background thread.

    Parameters
    ----------
    events:
        The events to play back.  May be a lazy iterable.
    publish:
        Receives each event, typically ``RunOrchestrator.publish``.
    pace:
        Seconds to wait between events.  0 plays back as fast as possible.
    on_crash:
        Called with a description if playback itself fails, typically
        ``RunOrchestrator.abort``.
    """

    def __init__(
        self,
        events: Iterable[EngineEvent],
        publish: Callable[[EngineEvent], None],
        *,
        pace: float = 0.0,
        on_crash: Callable[[str], None] | None = None,
    ) -> None:
        self._events = events
        self._publish = publish
        self._pace = pace
        self._on_crash = on_crash
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="simwatch-replay-engine", daemon=True
        )
        self.stop_requests = 0

    def start(self) -> None:
        self._thread.start()

    def request_stop(self) -> None:
        self.stop_requests += 1
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        try:
            for event in self._events:
                if self._stop.is_set():
                    break
                self._publish(event)
                if event.kind in _TERMINAL_KINDS:
                    return
                if self._pace and self._stop.wait(self._pace):
                    break
        except Exception as exc:  # noqa: BLE001
            logger.exception("Replay engine crashed")
            if self._on_crash is not None:
                self._on_crash(f"engine crashed: {exc}")
            return

        if self._stop.is_set():
            self._publish(StopAcknowledgedEvent())
        else:
            self._publish(CompletedEvent())
