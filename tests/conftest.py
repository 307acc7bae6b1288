"""Shared test fixtures for simwatch."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from simwatch.models.events import ProgressMetricsEvent
from simwatch.models.snapshot import RunBounds, Snapshot
from simwatch.routing.sinks import TransientDeliveryError

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake sinks — shared across test modules
# ---------------------------------------------------------------------------


class RecordingSink:
    """A sink that records every snapshot it accepts."""

    def __init__(self, name: str = "recording", log: list[str] | None = None) -> None:
        self._name = name
        self.received: list[Snapshot] = []
        self._log = log

    @property
    def sink_name(self) -> str:
        return self._name

    def accept(self, snapshot: Snapshot, timeout: float | None = None) -> None:
        self.received.append(snapshot)
        if self._log is not None:
            self._log.append(self._name)


class FlakySink(RecordingSink):
    """Fails the first *failures* deliveries, then succeeds.

    A negative *failures* means it never succeeds.
    """

    def __init__(self, failures: int, name: str = "flaky") -> None:
        super().__init__(name)
        self.failures = failures
        self.attempts = 0

    def accept(self, snapshot: Snapshot, timeout: float | None = None) -> None:
        self.attempts += 1
        if self.failures < 0 or self.attempts <= self.failures:
            raise TransientDeliveryError(f"attempt {self.attempts} refused")
        super().accept(snapshot)


class RecordingSleep:
    """Stand-in for ``time.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_metrics_event() -> Callable[..., ProgressMetricsEvent]:
    """Factory fixture: build a ProgressMetricsEvent with sensible defaults."""

    def _factory(**overrides: Any) -> ProgressMetricsEvent:
        defaults: dict[str, Any] = {
            "updates_requested": 1000,
            "updates_processed": 1000,
            "delayed_update_requests": 50,
            "error_update_requests": 10,
            "elapsed_time": timedelta(seconds=10),
            "simulated_elapsed_time": timedelta(hours=1),
        }
        defaults.update(overrides)
        return ProgressMetricsEvent(**defaults)

    return _factory


@pytest.fixture
def bounded() -> RunBounds:
    """A one-hour simulated timeline starting at T0."""
    return RunBounds(from_=T0, to=T0 + timedelta(hours=1))


@pytest.fixture
def open_ended() -> RunBounds:
    return RunBounds(from_=T0)


@pytest.fixture
def snapshot() -> Snapshot:
    """A ready-made Snapshot with test defaults."""
    return Snapshot(
        total_requests=1000,
        updates_processed=1000,
        elapsed=timedelta(seconds=10),
        simulated_elapsed=timedelta(minutes=30),
        throughput=100.0,
        delayed_rate_pct=5.0,
        error_rate_pct=1.0,
        pending_time=timedelta(seconds=10),
        simulated_pending_time=timedelta(minutes=30),
        taken_at=T0,
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_recording_sink() -> Callable[..., RecordingSink]:
    """Factory fixture: build a RecordingSink."""
    return RecordingSink


@pytest.fixture
def make_flaky_sink() -> Callable[..., FlakySink]:
    """Factory fixture: build a FlakySink failing the first N attempts."""
    return FlakySink
