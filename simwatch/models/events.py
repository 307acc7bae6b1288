"""Engine event contract — the typed stream emitted by the simulation engine.

The engine is a black box.  It reports progress as cumulative counters and
lifecycle changes as named events.  Every event is a frozen Pydantic model;
anything outside the contract decodes to ``UnknownEvent`` so a newer engine
never breaks an older watcher.
"""

from __future__ import annotations

import json
from datetime import timedelta
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EngineEventKind(str, Enum):
    """Event kinds in the engine contract (wire names)."""

    PROGRESS_METRICS = "progress-metrics"
    FAULT = "fault"
    INFORMATIONAL = "informational"
    STOP_ACKNOWLEDGED = "stop-acknowledged"
    COMPLETED = "completed"
    UNKNOWN = "unknown"


class EventDecodeError(ValueError):
    """Raised when raw engine input cannot be decoded into an event."""


class EngineEventBase(BaseModel):
    """Fields shared by every engine event."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: EngineEventKind


class ProgressMetricsEvent(EngineEventBase):
    """Cumulative progress counters since run start.

    ``elapsed_time`` is wall-clock time; ``simulated_elapsed_time`` is time
    along the fast-forwarded timeline.  On the wire durations are seconds
    (int or float) or ISO-8601 durations.
    """

    kind: EngineEventKind = EngineEventKind.PROGRESS_METRICS
    updates_requested: int = Field(0, ge=0, alias="updatesRequested")
    updates_processed: int = Field(0, ge=0, alias="updatesProcessed")
    delayed_update_requests: int = Field(0, ge=0, alias="delayedUpdateRequests")
    error_update_requests: int = Field(0, ge=0, alias="errorUpdateRequests")
    elapsed_time: timedelta = Field(timedelta(0), alias="elapsedTime")
    simulated_elapsed_time: timedelta = Field(
        timedelta(0), alias="simulatedElapsedTime"
    )


class FaultEvent(EngineEventBase):
    """A non-fatal failure reported by the engine."""

    kind: EngineEventKind = EngineEventKind.FAULT
    detail: str


class InformationalEvent(EngineEventBase):
    kind: EngineEventKind = EngineEventKind.INFORMATIONAL
    message: str


class StopAcknowledgedEvent(EngineEventBase):
    """The engine has honoured a stop request and will emit nothing else."""

    kind: EngineEventKind = EngineEventKind.STOP_ACKNOWLEDGED


class CompletedEvent(EngineEventBase):
    """The engine reached the end of the simulated timeline on its own."""

    kind: EngineEventKind = EngineEventKind.COMPLETED


class UnknownEvent(EngineEventBase):
    """Any event whose kind is not part of the contract."""

    kind: EngineEventKind = EngineEventKind.UNKNOWN
    raw_kind: str = ""
    payload: dict[str, Any] = {}


EngineEvent = Union[
    ProgressMetricsEvent,
    FaultEvent,
    InformationalEvent,
    StopAcknowledgedEvent,
    CompletedEvent,
    UnknownEvent,
]

EVENT_TYPE_MAP: dict[EngineEventKind, type[EngineEventBase]] = {
    EngineEventKind.PROGRESS_METRICS: ProgressMetricsEvent,
    EngineEventKind.FAULT: FaultEvent,
    EngineEventKind.INFORMATIONAL: InformationalEvent,
    EngineEventKind.STOP_ACKNOWLEDGED: StopAcknowledgedEvent,
    EngineEventKind.COMPLETED: CompletedEvent,
}


def parse_event(data: dict[str, Any]) -> EngineEvent:
    """Build an event model from a decoded mapping.

    The mapping must carry a ``kind`` key.  Kinds outside the contract
    yield an ``UnknownEvent`` carrying the original payload.
    """
    if not isinstance(data, dict):
        raise EventDecodeError(
            f"Event must be a JSON object, got {type(data).__name__}"
        )

    kind_str = data.get("kind")
    if not kind_str:
        raise EventDecodeError("Missing kind field")

    try:
        kind = EngineEventKind(kind_str)
    except ValueError:
        kind = EngineEventKind.UNKNOWN

    model_cls = EVENT_TYPE_MAP.get(kind)
    if model_cls is None:
        payload = {k: v for k, v in data.items() if k != "kind"}
        return UnknownEvent(raw_kind=str(kind_str), payload=payload)

    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise EventDecodeError(f"Invalid {kind_str} event: {exc}") from exc


def decode_event(raw: bytes | str) -> EngineEvent:
    """Decode one JSON document into an engine event."""
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventDecodeError(f"Invalid JSON: {exc}") from exc

    return parse_event(data)
