"""Synthetic fast-forward event stream for demos.

Walks a simulated timeline of *simulated_span* in *ticks* equal steps,
reporting cumulative counters with real wall-clock elapsed time.  Every
*fault_every*-th tick also emits a fault.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from datetime import timedelta

from simwatch.models.events import (
    EngineEvent,
    FaultEvent,
    InformationalEvent,
    ProgressMetricsEvent,
)


def synthetic_events(
    total_updates: int,
    simulated_span: timedelta,
    *,
    ticks: int = 20,
    fault_every: int = 0,
    delayed_ratio: float = 0.05,
    error_ratio: float = 0.01,
    clock: Callable[[], float] = time.monotonic,
) -> Iterator[EngineEvent]:
    if ticks < 1:
        raise ValueError(f"ticks must be positive, got {ticks}")

    started = clock()
    yield InformationalEvent(
        message=f"fast-forwarding {simulated_span} with {total_updates} updates"
    )
    for tick in range(1, ticks + 1):
        requested = total_updates * tick // ticks
        if fault_every and tick % fault_every == 0:
            yield FaultEvent(detail=f"update batch {tick} rejected by device")
        yield ProgressMetricsEvent(
            updates_requested=requested,
            updates_processed=requested,
            delayed_update_requests=int(requested * delayed_ratio),
            error_update_requests=int(requested * error_ratio),
            elapsed_time=timedelta(seconds=clock() - started),
            simulated_elapsed_time=simulated_span * tick / ticks,
        )
