"""Metric projector — turns raw engine counters into a progress Snapshot.

Pure and deterministic: no I/O, no shared state.  Two clocks are in play:
wall-clock time (how long the run has really taken) and simulated time
(how far along the fast-forwarded timeline the engine has got).  The
wall-clock projection assumes the wall-clock cost per unit of simulated
time stays what it has been so far.

Any value that cannot be computed (zero divisor, open-ended run) is
``None`` rather than NaN or infinity.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from simwatch.models.events import ProgressMetricsEvent
from simwatch.models.snapshot import FaultEntry, RunBounds, Snapshot

_ZERO = timedelta(0)


def compute_throughput(updates_requested: int, elapsed: timedelta) -> float | None:
    """Requests per wall-clock second, or ``None`` before any time has passed."""
    seconds = elapsed.total_seconds()
    if seconds <= 0:
        return None
    return updates_requested / seconds


def compute_rate_pct(count: int, updates_processed: int) -> float | None:
    """Return *count* as a percentage of processed updates.

    Malformed upstream data may push this above 100; the value is reported
    as-is rather than clamped.
    """
    if updates_processed <= 0:
        return None
    return 100.0 * count / updates_processed


def compute_simulated_pending(
    bounds: RunBounds, simulated_elapsed: timedelta
) -> timedelta | None:
    """Remaining distance along the simulated timeline."""
    span = bounds.span
    if span is None:
        return None
    return max(span - simulated_elapsed, _ZERO)


def compute_pending(
    bounds: RunBounds, elapsed: timedelta, simulated_elapsed: timedelta
) -> timedelta | None:
    """Projected wall-clock time until the simulated end is reached.

    ``(to - (from + simulated_elapsed)) * elapsed / simulated_elapsed``
    """
    if bounds.from_ is None or bounds.to is None:
        return None
    if simulated_elapsed <= _ZERO:
        return None

    remaining = bounds.to - (bounds.from_ + simulated_elapsed)
    if remaining <= _ZERO:
        return _ZERO

    try:
        return remaining * (elapsed / simulated_elapsed)
    except OverflowError:
        return None


def project(
    event: ProgressMetricsEvent,
    bounds: RunBounds,
    faults: Iterable[FaultEntry] = (),
    *,
    taken_at: datetime | None = None,
) -> Snapshot:
    """Derive a Snapshot from one progress-metrics event.

    Parameters
    ----------
    event:
        Cumulative counters reported by the engine.
    bounds:
        Simulated start/end of the run.
    faults:
        Current fault history; copied into the snapshot by value.
    taken_at:
        Timestamp for the snapshot.  Defaults to now (UTC).
    """
    fields = {
        "total_requests": event.updates_requested,
        "updates_processed": event.updates_processed,
        "elapsed": event.elapsed_time,
        "simulated_elapsed": event.simulated_elapsed_time,
        "throughput": compute_throughput(
            event.updates_requested, event.elapsed_time
        ),
        "delayed_rate_pct": compute_rate_pct(
            event.delayed_update_requests, event.updates_processed
        ),
        "error_rate_pct": compute_rate_pct(
            event.error_update_requests, event.updates_processed
        ),
        "pending_time": compute_pending(
            bounds, event.elapsed_time, event.simulated_elapsed_time
        ),
        "simulated_pending_time": compute_simulated_pending(
            bounds, event.simulated_elapsed_time
        ),
        "faults": tuple(faults),
    }
    if taken_at is not None:
        fields["taken_at"] = taken_at
    return Snapshot(**fields)
