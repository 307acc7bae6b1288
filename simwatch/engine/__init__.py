"""Simulation engine boundary.

The engine is an external collaborator.  simwatch only needs two things
from it: a stream of events (pushed into ``RunOrchestrator.publish``) and
a way to ask it to stop.  ``EngineControl`` is that second half.

``ReplayEngine`` and ``synthetic_events`` are small in-process stand-ins
used by the CLI and the tests; they do not simulate anything themselves.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EngineControl(Protocol):
    """Control surface the orchestrator drives on the engine."""

    def request_stop(self) -> None:
        """Ask the engine to stop and emit ``stop-acknowledged`` when it has."""
        ...
