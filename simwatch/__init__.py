"""simwatch: progress monitoring and reporting for fast-forward simulations.

Sits on top of a time-accelerated simulation engine and turns its event
stream into progress snapshots:
  - dual-clock projection (wall-clock vs. simulated time remaining)
  - bounded rolling history of recent engine faults
  - console progress lines and best-effort external HTTP reports
  - graceful abort on SIGINT/SIGTERM with a retried final report
"""

__version__ = "0.1.0"
__description__ = "Progress monitoring and reporting for fast-forward simulations"

from simwatch.core.fault_log import FaultLog
from simwatch.core.orchestrator import RunOrchestrator
from simwatch.core.projector import project
from simwatch.routing.dispatcher import NotificationDispatcher

__all__ = [
    "FaultLog",
    "NotificationDispatcher",
    "RunOrchestrator",
    "project",
    "__version__",
]
