"""Shared formatting helpers for simwatch sinks.

Snapshots carry numeric values; these helpers turn them into the
human-readable strings shown on the console and sent in reports.
``None`` always renders as ``"N/A"``.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from simwatch.models.snapshot import Snapshot

NOT_APPLICABLE = "N/A"

_UNITS: tuple[tuple[str, int], ...] = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def humanize_duration(value: timedelta, *, max_units: int = 2) -> str:
    """Render a duration as e.g. ``"2 hours, 3 minutes"``.

    Only the *max_units* most significant non-zero units are shown.
    Sub-second durations render as ``"0 seconds"``.

    Examples
    --------
    >>> humanize_duration(timedelta(hours=2, minutes=3, seconds=4))
    '2 hours, 3 minutes'
    >>> humanize_duration(timedelta(seconds=1))
    '1 second'
    """
    remaining = int(value.total_seconds())
    sign = "-" if remaining < 0 else ""
    remaining = abs(remaining)

    parts: list[str] = []
    for unit, size in _UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count} {unit}{'' if count == 1 else 's'}")
        if len(parts) == max_units:
            break

    if not parts:
        return "0 seconds"
    return sign + ", ".join(parts)


def format_duration(value: timedelta | None) -> str:
    if value is None:
        return NOT_APPLICABLE
    return humanize_duration(value)


def format_rate(value: float | None) -> str:
    """Two-decimal rendering used for throughput and percentages."""
    if value is None:
        return NOT_APPLICABLE
    return f"{value:.2f}"


def snapshot_fields(snapshot: Snapshot) -> dict[str, str]:
    """Return the human-readable fields of a snapshot, in display order."""
    return {
        "requests": str(snapshot.total_requests),
        "elapsed": format_duration(snapshot.elapsed),
        "simulated_elapsed": format_duration(snapshot.simulated_elapsed),
        "throughput": format_rate(snapshot.throughput),
        "delayed_pct": format_rate(snapshot.delayed_rate_pct),
        "error_pct": format_rate(snapshot.error_rate_pct),
        "pending": format_duration(snapshot.pending_time),
        "simulated_pending": format_duration(snapshot.simulated_pending_time),
        "faults": str(snapshot.fault_count),
    }


def report_document(snapshot: Snapshot) -> dict[str, Any]:
    """Build the JSON document sent to the external reporting sink.

    Carries the numeric snapshot (durations in seconds), the human-readable
    rendering, and the fault history at snapshot time.
    """
    return {
        "taken_at": snapshot.taken_at.isoformat(),
        "total_requests": snapshot.total_requests,
        "updates_processed": snapshot.updates_processed,
        "elapsed_seconds": snapshot.elapsed.total_seconds(),
        "simulated_elapsed_seconds": snapshot.simulated_elapsed.total_seconds(),
        "throughput": snapshot.throughput,
        "delayed_rate_pct": snapshot.delayed_rate_pct,
        "error_rate_pct": snapshot.error_rate_pct,
        "pending_seconds": _seconds(snapshot.pending_time),
        "simulated_pending_seconds": _seconds(snapshot.simulated_pending_time),
        "display": snapshot_fields(snapshot),
        "faults": [
            {"timestamp": f.timestamp.isoformat(), "detail": f.detail}
            for f in snapshot.faults
        ],
    }


def _seconds(value: timedelta | None) -> float | None:
    return None if value is None else value.total_seconds()
