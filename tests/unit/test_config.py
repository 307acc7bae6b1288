"""Unit tests for simwatch.config."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from simwatch.config import WatchSettings, build_external_sink
from simwatch.routing.sinks.http import HttpReportSink


def _settings(**kwargs) -> WatchSettings:
    return WatchSettings(_env_file=None, **kwargs)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "SIMWATCH_LOG_LEVEL",
        "SIMWATCH_SINK_ENDPOINT",
        "SIMWATCH_SINK_NAME",
        "SIMWATCH_SINK_TOKEN",
        "SIMWATCH_SIM_FROM",
        "SIMWATCH_SIM_TO",
        "SIMWATCH_SILENT",
        "SIMWATCH_FINAL_REPORT_ATTEMPT_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestWatchSettings:
    def test_defaults(self):
        s = _settings()
        assert s.log_level == "INFO"
        assert s.silent is False
        assert s.final_report_attempts == 5
        assert s.final_report_interval_seconds == 1.0
        assert s.final_report_attempt_timeout_seconds == 1.0
        assert s.stop_ack_timeout_seconds == 5.0
        assert s.fault_log_capacity == 10
        assert not s.external_sink_configured

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SIMWATCH_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("SIMWATCH_SILENT", "true")
        s = _settings()
        assert s.log_level == "DEBUG"
        assert s.silent is True

    def test_run_bounds_from_env(self, monkeypatch):
        monkeypatch.setenv("SIMWATCH_SIM_FROM", "2026-01-01T00:00:00Z")
        monkeypatch.setenv("SIMWATCH_SIM_TO", "2026-01-02T00:00:00Z")
        bounds = _settings().run_bounds()
        assert bounds.from_ == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert bounds.span == timedelta(days=1)

    def test_run_bounds_open_ended_by_default(self):
        bounds = _settings().run_bounds()
        assert bounds.from_ is None
        assert bounds.to is None


class TestBuildExternalSink:
    def test_unset_returns_none(self):
        assert build_external_sink(_settings()) is None

    def test_valid_config(self):
        s = _settings(
            sink_endpoint="https://reports.example.com/v1",
            sink_name="fleet-ff",
            sink_token="abc",
            sink_timeout_seconds=3,
        )
        sink = build_external_sink(s)
        assert isinstance(sink, HttpReportSink)
        assert sink.config.url == "https://reports.example.com/v1/fleet-ff"
        assert sink.config.timeout_seconds == 3

    def test_missing_name_disables_reporting(self, caplog):
        s = _settings(sink_endpoint="https://reports.example.com/v1")
        with caplog.at_level("WARNING"):
            assert build_external_sink(s) is None
        assert "External reporting disabled" in caplog.text

    def test_malformed_endpoint_disables_reporting(self):
        s = _settings(sink_endpoint="ftp//nowhere", sink_name="fleet-ff")
        assert build_external_sink(s) is None
