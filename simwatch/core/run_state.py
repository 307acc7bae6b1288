"""Run lifecycle state machine.

Enforces the transitions in ``VALID_TRANSITIONS``: a run starts RUNNING and
moves exactly once, either to STOPPING (abort) or to ENDED (natural
completion).  Every transition is kept in an in-memory history for
diagnostics.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from simwatch.models.run import VALID_TRANSITIONS, RunState

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class RunStateMachine:
    """Tracks the current ``RunState`` and validates every transition."""

    def __init__(self) -> None:
        self._state = RunState.RUNNING
        self._history: list[tuple[RunState, RunState, str, datetime]] = []

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self._state]

    @property
    def history(self) -> list[tuple[RunState, RunState, str, datetime]]:
        """Return a copy of ``(from, to, reason, at)`` tuples, oldest first."""
        return list(self._history)

    def can_transition(self, target: RunState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    def transition(self, target: RunState, reason: str = "") -> RunState:
        """Move to *target*, returning the previous state.

        Raises
        ------
        InvalidTransitionError
            If *target* is not reachable from the current state.
        """
        current = self._state
        if not self.can_transition(target):
            allowed = VALID_TRANSITIONS.get(current, set())
            raise InvalidTransitionError(
                f"Cannot transition run from {current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        self._state = target
        self._history.append((current, target, reason, datetime.now(timezone.utc)))
        logger.info("Run state %s -> %s (%s)", current.value, target.value, reason or "-")
        return current
