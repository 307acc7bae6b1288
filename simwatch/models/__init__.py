"""simwatch data models — all Pydantic v2, all frozen (immutable)."""

from simwatch.models.events import (
    CompletedEvent,
    EngineEvent,
    EngineEventKind,
    EventDecodeError,
    FaultEvent,
    InformationalEvent,
    ProgressMetricsEvent,
    StopAcknowledgedEvent,
    UnknownEvent,
    decode_event,
    parse_event,
)
from simwatch.models.routing import MalformedSinkConfigError, SinkConfig
from simwatch.models.run import VALID_TRANSITIONS, RunState
from simwatch.models.snapshot import FaultEntry, RunBounds, Snapshot

__all__ = [
    # events
    "EngineEventKind",
    "EngineEvent",
    "ProgressMetricsEvent",
    "FaultEvent",
    "InformationalEvent",
    "StopAcknowledgedEvent",
    "CompletedEvent",
    "UnknownEvent",
    "EventDecodeError",
    "parse_event",
    "decode_event",
    # snapshot
    "RunBounds",
    "FaultEntry",
    "Snapshot",
    # run
    "RunState",
    "VALID_TRANSITIONS",
    # routing
    "SinkConfig",
    "MalformedSinkConfigError",
]
