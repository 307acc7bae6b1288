"""End-to-end integration tests — a watched run from first event to final report.

These tests exercise the ReplayEngine, RunOrchestrator, FaultLog,
NotificationDispatcher and HttpReportSink working together, with the HTTP
session replaced by an in-memory fake.
"""

from __future__ import annotations

import io
import itertools
import json
import threading
from datetime import timedelta
from typing import Any

import pytest
import requests
from rich.console import Console

from simwatch.core.fault_log import FaultLog
from simwatch.core.orchestrator import EXIT_OK, RunOrchestrator
from simwatch.engine.replay import ReplayEngine
from simwatch.engine.synthetic import synthetic_events
from simwatch.models.events import FaultEvent, InformationalEvent, ProgressMetricsEvent
from simwatch.models.routing import SinkConfig
from simwatch.models.run import RunState
from simwatch.routing.dispatcher import NotificationDispatcher
from simwatch.routing.sinks.console import ConsoleSink
from simwatch.routing.sinks.http import HttpReportSink


class _ReportServer:
    """Fake ``requests.Session`` collecting posted report documents."""

    def __init__(self, fail_first: int = 0) -> None:
        self.fail_first = fail_first
        self.posts: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        with self._lock:
            self.posts.append(kwargs["json"])
            attempt = len(self.posts)
        if attempt <= self.fail_first:
            raise requests.ConnectionError("connection reset by peer")
        response = requests.Response()
        response.status_code = 200
        response.url = url
        response._content = json.dumps({"ok": True}).encode()
        return response


def _assemble(server: _ReportServer, bounded, recording_sleep, **kwargs):
    buf = io.StringIO()
    sink = HttpReportSink(
        SinkConfig.build("https://reports.example.com/v1", "fleet-ff"), session=server
    )
    dispatcher = NotificationDispatcher(
        ConsoleSink(Console(file=buf, width=300, color_system=None)),
        sink,
        sleep=recording_sleep,
    )
    orch = RunOrchestrator(dispatcher, bounded, **kwargs)
    return orch, buf


class TestCompletedRun:
    def test_replayed_run_reports_final_state(self, bounded, recording_sleep):
        server = _ReportServer()
        orch, buf = _assemble(server, bounded, recording_sleep)
        events = [
            InformationalEvent(message="fast-forward started"),
            ProgressMetricsEvent(
                updates_requested=500,
                updates_processed=500,
                elapsed_time=timedelta(seconds=5),
                simulated_elapsed_time=timedelta(minutes=30),
            ),
            FaultEvent(detail="device 3 timed out"),
            ProgressMetricsEvent(
                updates_requested=1000,
                updates_processed=1000,
                delayed_update_requests=50,
                error_update_requests=10,
                elapsed_time=timedelta(seconds=10),
                simulated_elapsed_time=timedelta(hours=1),
            ),
        ]
        engine = ReplayEngine(events, orch.publish, on_crash=orch.abort)
        orch.attach_engine(engine)
        engine.start()

        assert orch.run() == EXIT_OK
        engine.join(timeout=5)

        assert orch.state is RunState.ENDED
        assert orch.final_result.delivered
        final = server.posts[-1]
        assert final["total_requests"] == 1000
        assert final["pending_seconds"] == 0.0
        assert final["faults"][0]["detail"] == "device 3 timed out"
        assert buf.getvalue().count("requests=") == 2

    def test_flaky_endpoint_recovers_for_final_report(self, bounded, recording_sleep):
        server = _ReportServer(fail_first=2)
        orch, _ = _assemble(server, bounded, recording_sleep)
        events = [
            FaultEvent(detail="device 1 rebooted"),
            ProgressMetricsEvent(updates_requested=1, elapsed_time=timedelta(seconds=1)),
        ]
        engine = ReplayEngine(events, orch.publish)
        orch.attach_engine(engine)
        engine.start()

        assert orch.run() == EXIT_OK
        assert orch.final_result.delivered
        # the periodic post may or may not have consumed one failure first
        assert orch.final_result.attempts in (2, 3)
        assert recording_sleep.calls
        assert server.posts[-1]["faults"][0]["detail"] == "device 1 rebooted"


class TestAbortedRun:
    def test_abort_mid_run(self, bounded, recording_sleep):
        server = _ReportServer()
        orch, _ = _assemble(server, bounded, recording_sleep, fault_log=FaultLog(3))
        started = threading.Event()

        def _endless():
            for i in itertools.count(1):
                if i % 4 == 0:
                    yield FaultEvent(detail=f"fault {i}")
                yield ProgressMetricsEvent(
                    updates_requested=i * 10,
                    updates_processed=i * 10,
                    elapsed_time=timedelta(seconds=i),
                    simulated_elapsed_time=timedelta(minutes=i),
                )
                started.set()

        engine = ReplayEngine(_endless(), orch.publish, pace=0.01, on_crash=orch.abort)
        orch.attach_engine(engine)
        engine.start()
        assert started.wait(2)
        orch.abort("received SIGINT")

        assert orch.run() == EXIT_OK
        engine.join(timeout=5)

        assert orch.state is RunState.STOPPING
        assert engine.stop_requests == 1
        assert not engine.is_running
        assert len(orch.fault_log) <= 3
        assert server.posts[-1]["total_requests"] == orch.last_snapshot.total_requests

    def test_engine_crash_is_aborted_run(self, bounded, recording_sleep):
        server = _ReportServer()
        orch, _ = _assemble(server, bounded, recording_sleep, stop_ack_timeout=0.2)

        def _crashing():
            yield ProgressMetricsEvent(updates_requested=7, elapsed_time=timedelta(seconds=1))
            raise ConnectionError("engine socket closed")

        engine = ReplayEngine(_crashing(), orch.publish, on_crash=orch.abort)
        orch.attach_engine(engine)
        engine.start()

        assert orch.run() == EXIT_OK
        assert orch.state is RunState.STOPPING
        assert "engine socket closed" in orch.state_machine.history[0][2]
        assert server.posts[-1]["total_requests"] == 7


class TestSyntheticRun:
    @pytest.mark.parametrize("ticks", [1, 5])
    def test_synthetic_stream_completes(self, bounded, recording_sleep, ticks):
        server = _ReportServer()
        orch, _ = _assemble(server, bounded, recording_sleep)
        events = synthetic_events(1000, timedelta(hours=1), ticks=ticks, fault_every=2)
        engine = ReplayEngine(events, orch.publish)
        orch.attach_engine(engine)
        engine.start()

        assert orch.run() == EXIT_OK
        assert orch.state is RunState.ENDED
        assert orch.last_snapshot.total_requests == 1000
        assert orch.last_snapshot.simulated_pending_time == timedelta(0)
