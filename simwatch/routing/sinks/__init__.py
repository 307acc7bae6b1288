"""Sink protocol and delivery errors for simwatch notifications.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property
and an ``accept(snapshot)`` method.  The dispatcher hands every snapshot
to the console sink and, when configured, to the external sink.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from simwatch.models.snapshot import Snapshot


class DeliveryError(RuntimeError):
    """Base class for a failed delivery to a sink."""


class TransientDeliveryError(DeliveryError):
    """Network error, timeout, or non-success HTTP status from the sink."""


class SinkRejectedError(DeliveryError):
    """The sink answered but reported an error in its response body."""


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every simwatch sink must implement.

    Attributes
    ----------
    sink_name : str
        A unique human-readable identifier for this sink instance
        (e.g. ``"console"``, ``"http:progress"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def accept(self, snapshot: Snapshot, timeout: float | None = None) -> None:
        """Deliver a snapshot.

        *timeout* caps how long this one delivery may block, in seconds;
        ``None`` means the sink's own default.  Raise ``DeliveryError`` (or
        a subclass) when the snapshot could not be delivered.  The
        dispatcher decides whether to retry.
        """
        ...
