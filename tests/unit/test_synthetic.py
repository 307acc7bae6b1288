"""Unit tests for the synthetic fast-forward stream."""

from __future__ import annotations

from datetime import timedelta

import pytest

from simwatch.engine.synthetic import synthetic_events
from simwatch.models.events import FaultEvent, InformationalEvent, ProgressMetricsEvent


class _StepClock:
    def __init__(self, step: float = 0.5) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def test_counters_are_cumulative():
    events = list(
        synthetic_events(1000, timedelta(hours=10), ticks=4, clock=_StepClock())
    )
    assert isinstance(events[0], InformationalEvent)
    metrics = [e for e in events if isinstance(e, ProgressMetricsEvent)]
    assert [m.updates_requested for m in metrics] == [250, 500, 750, 1000]
    assert metrics[-1].simulated_elapsed_time == timedelta(hours=10)
    assert metrics[-1].delayed_update_requests == 50
    assert metrics[-1].error_update_requests == 10


def test_elapsed_time_uses_clock():
    events = list(
        synthetic_events(10, timedelta(hours=1), ticks=2, clock=_StepClock(1.0))
    )
    metrics = [e for e in events if isinstance(e, ProgressMetricsEvent)]
    assert [m.elapsed_time for m in metrics] == [
        timedelta(seconds=1),
        timedelta(seconds=2),
    ]


def test_faults_every_nth_tick():
    events = list(
        synthetic_events(100, timedelta(hours=1), ticks=6, fault_every=3, clock=_StepClock())
    )
    faults = [e for e in events if isinstance(e, FaultEvent)]
    assert [f.detail for f in faults] == [
        "update batch 3 rejected by device",
        "update batch 6 rejected by device",
    ]


def test_rejects_zero_ticks():
    with pytest.raises(ValueError):
        list(synthetic_events(10, timedelta(hours=1), ticks=0))
