"""Progress snapshot models — derived, point-in-time views of a run."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RunBounds(BaseModel):
    """Simulated start and end instants of the run.

    Set once at run start.  ``to`` absent means an open-ended simulation
    with no projected end.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: datetime | None = Field(None, alias="from")
    to: datetime | None = None

    @field_validator("from_", "to")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> RunBounds:
        if self.from_ is not None and self.to is not None and self.to < self.from_:
            raise ValueError(
                f"Run end {self.to.isoformat()} precedes run start "
                f"{self.from_.isoformat()}"
            )
        return self

    @property
    def span(self) -> timedelta | None:
        """Length of the simulated timeline, or ``None`` if unbounded."""
        if self.from_ is None or self.to is None:
            return None
        return self.to - self.from_


class FaultEntry(BaseModel):
    """One recorded engine failure."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    detail: str


class Snapshot(BaseModel):
    """A frozen, fully derived progress report.

    Durations and rates stay numeric; ``None`` marks a value that is not
    applicable (e.g. no processed updates yet, or an open-ended run).
    Human-readable strings are produced only by the sinks.
    """

    model_config = ConfigDict(frozen=True)

    total_requests: int
    updates_processed: int = 0
    elapsed: timedelta = timedelta(0)
    simulated_elapsed: timedelta = timedelta(0)
    throughput: float | None = None  # requests per wall-clock second
    delayed_rate_pct: float | None = None
    error_rate_pct: float | None = None
    pending_time: timedelta | None = None
    simulated_pending_time: timedelta | None = None
    faults: tuple[FaultEntry, ...] = ()
    taken_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def fault_count(self) -> int:
        return len(self.faults)
