"""Thread-safe in-memory metric storage."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from pulse.lib.values import INT64_MAX, INT64_MIN, CounterValue, GaugeValue, MetricKind, MetricValue


@dataclass(frozen=True)
class StoreSnapshot:
    """Point-in-time copy of both metric namespaces."""

    gauges: dict[str, float] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)


class MemStorage:
    """Holds current gauge and counter values for the lifetime of the process.

    Gauges and counters live in separate namespaces. A single lock guards both
    maps so every update is linearized and snapshots never see a partial write.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gauges: dict[str, float] = {}
        self._counters: dict[str, int] = {}

    def update_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def update_counter(self, name: str, delta: int) -> int:
        """Add ``delta`` to the counter (absent counts as zero) and return the new total.

        Raises ``OverflowError`` and leaves the counter unchanged when the total
        would leave the signed 64-bit range.
        """

        with self._lock:
            total = self._counters.get(name, 0) + delta
            if not INT64_MIN <= total <= INT64_MAX:
                raise OverflowError(f"counter {name} would overflow int64")
            self._counters[name] = total
            return total

    def get_gauge(self, name: str) -> float | None:
        with self._lock:
            return self._gauges.get(name)

    def get_counter(self, name: str) -> int | None:
        with self._lock:
            return self._counters.get(name)

    def get(self, kind: MetricKind, name: str) -> MetricValue | None:
        if kind is MetricKind.GAUGE:
            gauge = self.get_gauge(name)
            return None if gauge is None else GaugeValue(value=gauge)
        counter = self.get_counter(name)
        return None if counter is None else CounterValue(value=counter)

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(gauges=dict(self._gauges), counters=dict(self._counters))
