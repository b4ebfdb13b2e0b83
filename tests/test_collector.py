"""Tests for the agent's sampling collector."""

from __future__ import annotations

import itertools
import logging
import math
import threading

import pytest

from pulse.agent.collector import Collector, RuntimeSampler


def test_collector_starts_empty() -> None:
    collector = Collector(sampler=lambda: {"a": 1.0})

    sample = collector.read()
    assert sample.gauges == {}
    assert sample.poll_count == 0


def test_poll_replaces_snapshot_and_counts() -> None:
    batches = iter([{"a": 1.0, "b": 2.0}, {"c": 3}])
    collector = Collector(sampler=lambda: next(batches))

    assert collector.poll() == 1
    assert collector.read().gauges == {"a": 1.0, "b": 2.0}

    assert collector.poll() == 2
    sample = collector.read()
    assert sample.gauges == {"c": 3.0}
    assert isinstance(sample.gauges["c"], float)
    assert sample.poll_count == 2


def test_failed_sample_keeps_previous_state() -> None:
    calls = itertools.count()

    def sampler() -> dict[str, float]:
        if next(calls) == 1:
            raise OSError("proc unavailable")
        return {"a": 1.0}

    collector = Collector(sampler=sampler)
    collector.poll()

    with pytest.raises(OSError):
        collector.poll()

    sample = collector.read()
    assert sample.poll_count == 1
    assert sample.gauges == {"a": 1.0}


def test_non_finite_values_are_dropped() -> None:
    collector = Collector(sampler=lambda: {"ok": 1.5, "bad": math.nan, "worse": math.inf})

    collector.poll()

    assert collector.read().gauges == {"ok": 1.5}


def test_read_returns_copy() -> None:
    collector = Collector(sampler=lambda: {"a": 1.0})
    collector.poll()

    sample = collector.read()
    sample.gauges["a"] = 99.0

    assert collector.read().gauges == {"a": 1.0}


def test_concurrent_polls_never_lose_or_rewind_the_count() -> None:
    counter = itertools.count(1)
    lock = threading.Lock()

    def sampler() -> dict[str, float]:
        with lock:
            return {"tick": float(next(counter))}

    collector = Collector(sampler=sampler)
    reads = []
    stop = threading.Event()

    def reader() -> None:
        while not stop.is_set():
            reads.append(collector.read())

    reader_thread = threading.Thread(target=reader)
    reader_thread.start()
    pollers = [threading.Thread(target=lambda: [collector.poll() for _ in range(100)]) for _ in range(4)]
    for thread in pollers:
        thread.start()
    for thread in pollers:
        thread.join()
    stop.set()
    reader_thread.join()

    assert collector.poll_count == 400
    previous = 0
    for sample in reads:
        assert sample.poll_count >= previous
        previous = sample.poll_count


def test_runtime_sampler_reports_process_stats() -> None:
    values = RuntimeSampler()()

    for name in ("RSS", "VMS", "CPUPercent", "NumThreads", "GCCollections", "RandomValue"):
        assert name in values
        assert isinstance(values[name], float)
    assert values["RSS"] > 0
    assert 0.0 <= values["RandomValue"] < 1.0


def test_default_collector_uses_runtime_sampler() -> None:
    collector = Collector()

    assert collector.poll() == 1
    assert "RandomValue" in collector.read().gauges


def test_names_that_cannot_be_a_path_segment_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    collector = Collector(sampler=lambda: {"ok": 1.0, "a/b": 2.0, "": 3.0})

    with caplog.at_level(logging.WARNING, logger="pulse.agent.collector"):
        assert collector.poll() == 1

    assert collector.read().gauges == {"ok": 1.0}
    skipped = [record.metric for record in caplog.records if record.getMessage() == "agent.poll.invalid_name"]
    assert sorted(skipped) == ["", "a/b"]
