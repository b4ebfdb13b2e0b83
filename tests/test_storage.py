"""Tests for the in-memory metric storage."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from pulse.lib.values import INT64_MAX, INT64_MIN, CounterValue, GaugeValue, MetricKind
from pulse.server.storage import MemStorage


def test_gauge_last_write_wins(storage: MemStorage) -> None:
    storage.update_gauge("cpu", 10.5)
    storage.update_gauge("cpu", 95.5)

    assert storage.get_gauge("cpu") == 95.5


def test_counter_accumulates_deltas(storage: MemStorage) -> None:
    assert storage.update_counter("hits", 10) == 10
    assert storage.update_counter("hits", 5) == 15
    assert storage.update_counter("hits", -3) == 12

    assert storage.get_counter("hits") == 12


def test_unknown_metrics_are_not_found(storage: MemStorage) -> None:
    assert storage.get_gauge("missing") is None
    assert storage.get_counter("missing") is None
    assert storage.get(MetricKind.GAUGE, "missing") is None


def test_gauge_and_counter_namespaces_are_independent(storage: MemStorage) -> None:
    storage.update_gauge("requests", 1.25)
    storage.update_counter("requests", 7)

    assert storage.get(MetricKind.GAUGE, "requests") == GaugeValue(value=1.25)
    assert storage.get(MetricKind.COUNTER, "requests") == CounterValue(value=7)


def test_concurrent_counter_updates_are_not_lost(storage: MemStorage) -> None:
    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda _: storage.update_counter("hits", 1), range(100)))

    assert storage.get_counter("hits") == 100


def test_concurrent_updates_to_many_keys(storage: MemStorage) -> None:
    names = [f"metric{i}" for i in range(10)]

    def worker(name: str) -> None:
        for _ in range(200):
            storage.update_counter(name, 2)
            storage.update_gauge(name, 3.5)

    threads = [threading.Thread(target=worker, args=(name,)) for name in names for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = storage.snapshot()
    assert snapshot.counters == {name: 1200 for name in names}
    assert snapshot.gauges == {name: 3.5 for name in names}


def test_snapshot_is_a_detached_copy(storage: MemStorage) -> None:
    storage.update_gauge("load", 0.5)
    storage.update_counter("polls", 1)

    snapshot = storage.snapshot()
    storage.update_gauge("load", 0.75)
    storage.update_counter("polls", 1)
    snapshot.gauges["injected"] = 1.0

    assert snapshot.gauges == {"load": 0.5, "injected": 1.0}
    assert snapshot.counters == {"polls": 1}
    assert storage.get_gauge("injected") is None
    assert storage.get_counter("polls") == 2


def test_snapshot_only_sees_completed_writes(storage: MemStorage) -> None:
    """Snapshots taken during writes must hold values some writer actually stored."""

    written = {float(i) for i in range(500)}
    stop = threading.Event()
    seen: list[dict[str, float]] = []

    def reader() -> None:
        while not stop.is_set():
            seen.append(storage.snapshot().gauges)

    thread = threading.Thread(target=reader)
    thread.start()
    for value in sorted(written):
        storage.update_gauge("temp", value)
    stop.set()
    thread.join()

    for gauges in seen:
        assert set(gauges) <= {"temp"}
        if gauges:
            assert gauges["temp"] in written


def test_counter_overflow_is_rejected_and_total_kept(storage: MemStorage) -> None:
    assert storage.update_counter("c", INT64_MAX) == INT64_MAX

    with pytest.raises(OverflowError):
        storage.update_counter("c", 1)
    assert storage.get_counter("c") == INT64_MAX

    assert storage.update_counter("c", -1) == INT64_MAX - 1
    storage.update_counter("low", INT64_MIN)
    with pytest.raises(OverflowError):
        storage.update_counter("low", -1)
    assert storage.get_counter("low") == INT64_MIN
