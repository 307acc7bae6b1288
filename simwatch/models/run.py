"""Run lifecycle state model."""

from __future__ import annotations

from enum import Enum


class RunState(str, Enum):
    """Lifecycle of a watched run."""

    RUNNING = "running"
    STOPPING = "stopping"
    ENDED = "ended"


# STOPPING and ENDED are terminal; from there the only way out is process exit.
VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.RUNNING: {RunState.STOPPING, RunState.ENDED},
    RunState.STOPPING: set(),
    RunState.ENDED: set(),
}
