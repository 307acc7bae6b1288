"""NotificationDispatcher — delivers progress snapshots to the configured sinks.

Console delivery is synchronous and always happens first.  External
delivery is best-effort:

- periodic snapshots go to a background worker, one attempt each, never
  retried.  Only the newest pending snapshot is kept, so a slow sink can
  neither delay the console nor build up a backlog.
- the final snapshot is delivered with a fixed-interval retry loop under
  an overall deadline, because it is the last chance to report the run's
  end state and must not hold up shutdown.

Delivery failures are logged and returned as ``DeliveryResult`` values;
nothing here raises into the caller.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from simwatch.models.snapshot import Snapshot
from simwatch.routing.sinks import BaseSink, DeliveryError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_INTERVAL = 1.0
DEFAULT_ATTEMPT_TIMEOUT = 1.0


class DeliveryResult(BaseModel):
    """Outcome of delivering one snapshot to the external sink."""

    model_config = ConfigDict(frozen=True)

    delivered: bool
    attempts: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return not self.delivered


class _ExternalWorker:
    """Background thread with a one-slot mailbox for periodic deliveries."""

    def __init__(self, deliver: Callable[[Snapshot], DeliveryResult]) -> None:
        self._deliver = deliver
        self._cond = threading.Condition()
        self._pending: Snapshot | None = None
        self._busy = False
        self._closed = False
        self._thread = threading.Thread(
            target=self._run, name="simwatch-external-sink", daemon=True
        )
        self._thread.start()

    def submit(self, snapshot: Snapshot) -> None:
        with self._cond:
            if self._closed:
                return
            if self._pending is not None:
                logger.debug(
                    "External sink busy, dropping pending snapshot from %s",
                    self._pending.taken_at.isoformat(),
                )
            self._pending = snapshot
            self._cond.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or in flight."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._pending is None and not self._busy, timeout
            )

    def close(self, timeout: float | None = None) -> None:
        """Discard any pending snapshot and wait for an in-flight one."""
        with self._cond:
            self._closed = True
            self._pending = None
            self._cond.notify_all()
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                "External sink worker still busy after %.1fs, abandoning it",
                timeout or 0.0,
            )

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending is not None or self._closed)
                if self._pending is None:
                    return
                snapshot, self._pending = self._pending, None
                self._busy = True
            try:
                self._deliver(snapshot)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()


class NotificationDispatcher:
    """Routes snapshots to the console sink and the external sink.

    Parameters
    ----------
    console_sink:
        Synchronous local sink.  ``None`` disables console output.
    external_sink:
        Remote reporting sink.  ``None`` makes every external delivery a
        no-op success.
    max_attempts, interval:
        Defaults for ``deliver_external_with_retry``.
    attempt_timeout:
        Upper bound, in seconds, on each final-delivery attempt.  The whole
        final delivery is bounded by ``max_attempts * interval +
        attempt_timeout``.
    sleep, clock:
        Delay between final-delivery attempts and the monotonic clock the
        deadline is measured on.  Injectable for tests.
    """

    def __init__(
        self,
        console_sink: BaseSink | None = None,
        external_sink: BaseSink | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_RETRY_INTERVAL,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be positive, got {attempt_timeout}")
        self._console = console_sink
        self._external = external_sink
        self._max_attempts = max_attempts
        self._interval = interval
        self._attempt_timeout = attempt_timeout
        self._sleep = sleep
        self._clock = clock
        self._worker: _ExternalWorker | None = None
        self._closed = False
        self._final_cancelled = False

    @property
    def has_external_sink(self) -> bool:
        return self._external is not None

    @property
    def final_delivery_cancelled(self) -> bool:
        return self._final_cancelled

    def cancel_final_delivery(self) -> None:
        """Skip any remaining final-delivery attempts.

        Only sets a flag, so it is safe to call from a signal handler.  An
        attempt already in flight runs to its (bounded) timeout.
        """
        self._final_cancelled = True

    # ------------------------------------------------------------------
    # Console
    # ------------------------------------------------------------------

    def deliver_console(self, snapshot: Snapshot) -> None:
        """Print a snapshot locally.  Never raises."""
        if self._console is None:
            return
        try:
            self._console.accept(snapshot)
        except Exception as exc:  # noqa: BLE001
            logger.error("Console sink %s failed: %s", self._console.sink_name, exc)

    # ------------------------------------------------------------------
    # External
    # ------------------------------------------------------------------

    def deliver_external(self, snapshot: Snapshot | None) -> DeliveryResult:
        """Make exactly one external delivery attempt.

        A missing sink or snapshot is a no-op success with zero attempts.
        """
        if self._external is None or snapshot is None:
            return DeliveryResult(delivered=True, attempts=0)
        return self._attempt(self._external, snapshot, attempt=1)

    def deliver_external_with_retry(
        self,
        snapshot: Snapshot | None,
        max_attempts: int | None = None,
        interval: float | None = None,
    ) -> DeliveryResult:
        """Deliver the final snapshot, retrying with a fixed delay.

        Stops at the first success, at the overall deadline, or when
        ``cancel_final_delivery`` has been called.  If delivery does not
        succeed the failure is logged and returned; the caller still
        proceeds to shut down.
        """
        sink = self._external
        if sink is None or snapshot is None:
            return DeliveryResult(delivered=True, attempts=0)

        attempts_allowed = max_attempts or self._max_attempts
        delay = self._interval if interval is None else interval
        deadline = self._clock() + attempts_allowed * delay + self._attempt_timeout

        result = DeliveryResult(delivered=False)
        for attempt in range(1, attempts_allowed + 1):
            if self._final_cancelled:
                logger.warning(
                    "Final report to %s cancelled after %d attempt(s)",
                    sink.sink_name,
                    attempt - 1,
                )
                return DeliveryResult(
                    delivered=False,
                    attempts=result.attempts,
                    error="final report cancelled",
                )
            remaining = deadline - self._clock()
            if remaining <= 0:
                break

            result = self._attempt(
                sink,
                snapshot,
                attempt=attempt,
                timeout=min(self._attempt_timeout, remaining),
            )
            if result.delivered:
                if attempt > 1:
                    logger.info("Final report delivered on attempt %d", attempt)
                return result
            if attempt < attempts_allowed:
                self._sleep(min(delay, max(deadline - self._clock(), 0.0)))

        logger.error(
            "Failed to report final state to %s after %d attempts: %s",
            sink.sink_name,
            result.attempts,
            result.error,
        )
        return result

    @staticmethod
    def _attempt(
        sink: BaseSink,
        snapshot: Snapshot,
        *,
        attempt: int,
        timeout: float | None = None,
    ) -> DeliveryResult:
        try:
            sink.accept(snapshot, timeout=timeout)
        except DeliveryError as exc:
            logger.warning(
                "External delivery attempt %d to %s failed: %s",
                attempt,
                sink.sink_name,
                exc,
            )
            return DeliveryResult(delivered=False, attempts=attempt, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("External sink %s raised unexpectedly", sink.sink_name)
            return DeliveryResult(delivered=False, attempts=attempt, error=str(exc))
        return DeliveryResult(delivered=True, attempts=attempt)

    # ------------------------------------------------------------------
    # Periodic path
    # ------------------------------------------------------------------

    def deliver(self, snapshot: Snapshot) -> None:
        """Periodic delivery: console now, external in the background."""
        self.deliver_console(snapshot)
        if self._external is None or self._closed:
            return
        if self._worker is None:
            self._worker = _ExternalWorker(self.deliver_external)
        self._worker.submit(snapshot)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for pending periodic deliveries.  Returns ``False`` on timeout."""
        if self._worker is None:
            return True
        return self._worker.wait_idle(timeout)

    def close(self, timeout: float | None = 1.0) -> None:
        """Stop the background worker, discarding undelivered periodic snapshots."""
        self._closed = True
        if self._worker is not None:
            self._worker.close(timeout)
            self._worker = None
