"""Unit tests for the bounded fault log."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from simwatch.core.fault_log import FaultLog


class _TickingClock:
    def __init__(self) -> None:
        self._now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


class TestFaultLog:
    def test_empty(self):
        log = FaultLog()
        assert len(log) == 0
        assert log.snapshot() == ()
        assert log.capacity == 10

    def test_record_returns_entry(self):
        clock = _TickingClock()
        log = FaultLog(clock=clock)
        entry = log.record("device 7 timed out")
        assert entry.detail == "device 7 timed out"
        assert entry.timestamp == datetime(2026, 1, 1, 0, 0, 1, tzinfo=timezone.utc)

    def test_fifo_eviction_keeps_last_ten(self):
        log = FaultLog()
        for i in range(1, 16):
            log.record(f"fault {i}")

        details = [e.detail for e in log.snapshot()]
        assert details == [f"fault {i}" for i in range(6, 16)]
        assert len(log) == 10

    def test_never_exceeds_capacity(self):
        log = FaultLog(capacity=3)
        for i in range(50):
            log.record(str(i))
            assert len(log) <= 3

    def test_snapshot_is_a_copy(self):
        log = FaultLog(capacity=2)
        log.record("a")
        before = log.snapshot()
        log.record("b")
        log.record("c")
        assert [e.detail for e in before] == ["a"]
        assert isinstance(before, tuple)

    def test_invalid_capacity(self):
        with pytest.raises(ValueError, match="positive"):
            FaultLog(capacity=0)

    def test_concurrent_records_are_all_counted(self):
        log = FaultLog(capacity=1000)

        def _writer(n: int) -> None:
            for i in range(100):
                log.record(f"{n}-{i}")

        threads = [threading.Thread(target=_writer, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(log.snapshot()) == 500
