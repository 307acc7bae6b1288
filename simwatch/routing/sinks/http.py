"""HTTP report sink — posts progress reports to an external endpoint.

Each ``accept`` performs exactly one POST of the snapshot's report
document (metrics plus fault history) as JSON to ``{endpoint}/{name}``.
An optional access token is sent as a bearer token.

Success is any 2xx response whose JSON body does not carry a truthy
``error`` field.  Retrying is the dispatcher's decision, not the sink's.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from simwatch.models.routing import SinkConfig
from simwatch.models.snapshot import Snapshot
from simwatch.routing.sinks import SinkRejectedError, TransientDeliveryError
from simwatch.routing.sinks._formatting import report_document

logger = logging.getLogger(__name__)


class HttpReportSink:
    """Delivers snapshots to an external HTTP(S) reporting provider.

    Parameters
    ----------
    config:
        Validated endpoint, report name, token and timeout.
    session:
        A ``requests.Session`` (or compatible object exposing ``post``).
        A new session is created if not provided.
    """

    def __init__(self, config: SinkConfig, session: Any | None = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def sink_name(self) -> str:
        return f"http:{self._config.name}"

    @property
    def config(self) -> SinkConfig:
        return self._config

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def accept(self, snapshot: Snapshot, timeout: float | None = None) -> None:
        """POST one report.

        *timeout* shortens the configured request timeout; it never
        lengthens it.

        Raises
        ------
        TransientDeliveryError
            On network errors, timeouts, or non-2xx status codes.
        SinkRejectedError
            When the provider answers with an ``error`` field.
        """
        request_timeout = self._config.timeout_seconds
        if timeout is not None:
            request_timeout = min(request_timeout, timeout)
        try:
            response = self._session.post(
                self._config.url,
                json=report_document(snapshot),
                headers=self.build_headers(),
                timeout=request_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransientDeliveryError(
                f"{self.sink_name}: request failed: {exc}"
            ) from exc

        error = self._extract_error(response)
        if error:
            raise SinkRejectedError(f"{self.sink_name}: provider reported error: {error}")

        logger.debug(
            "HttpReportSink: delivered report (%d requests) to %s",
            snapshot.total_requests,
            self._config.url,
        )

    @staticmethod
    def _extract_error(response: Any) -> str:
        """Return the provider's error message, or ``""`` if none."""
        if not response.content:
            return ""
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return ""
