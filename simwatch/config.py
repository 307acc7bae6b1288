"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and SIMWATCH_* environment variables.  CLI options
override individual fields at run start; nothing changes afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic_settings import BaseSettings, SettingsConfigDict

from simwatch.models.routing import MalformedSinkConfigError, SinkConfig
from simwatch.models.snapshot import RunBounds
from simwatch.routing.sinks.http import HttpReportSink

logger = logging.getLogger(__name__)


class WatchSettings(BaseSettings):
    """simwatch settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SIMWATCH_LOG_LEVEL=DEBUG
        export SIMWATCH_SINK_ENDPOINT=https://reports.example.com/v1/streams
        export SIMWATCH_SINK_NAME=fleet-ff-2026
        export SIMWATCH_SINK_TOKEN=...

    Or via .env file::

        SIMWATCH_SILENT=true
        SIMWATCH_SIM_TO=2027-01-01T00:00:00Z
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SIMWATCH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    log_level: str = "INFO"
    silent: bool = False

    # External reporting sink; disabled unless endpoint and name are set
    sink_endpoint: str = ""
    sink_name: str = ""
    sink_token: str = ""
    sink_timeout_seconds: float = 10.0

    # Final report retry budget
    final_report_attempts: int = 5
    final_report_interval_seconds: float = 1.0
    final_report_attempt_timeout_seconds: float = 1.0

    # Shutdown
    stop_ack_timeout_seconds: float = 5.0

    # Fault history
    fault_log_capacity: int = 10

    # Simulated timeline
    sim_from: datetime | None = None
    sim_to: datetime | None = None

    @property
    def external_sink_configured(self) -> bool:
        return bool(self.sink_endpoint or self.sink_name)

    def run_bounds(self) -> RunBounds:
        """Build the (immutable) simulated bounds for a run."""
        return RunBounds(from_=self.sim_from, to=self.sim_to)


def build_external_sink(
    settings: WatchSettings, session: object | None = None
) -> HttpReportSink | None:
    """Return the configured HTTP sink, or ``None`` when unset or malformed.

    A malformed configuration disables external reporting for the run
    rather than failing it.
    """
    if not settings.external_sink_configured:
        return None
    try:
        sink_config = SinkConfig.build(
            endpoint=settings.sink_endpoint,
            name=settings.sink_name,
            token=settings.sink_token,
            timeout_seconds=settings.sink_timeout_seconds,
        )
    except MalformedSinkConfigError as exc:
        logger.warning("External reporting disabled: %s", exc)
        return None
    return HttpReportSink(sink_config, session=session)


# Module-level default; import as `from simwatch.config import settings`
settings = WatchSettings()
