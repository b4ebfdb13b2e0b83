"""Periodic sampling of process and interpreter statistics into a shared snapshot."""

from __future__ import annotations

import gc
import math
import random
import threading
from dataclasses import dataclass, field
from typing import Callable, Mapping

import psutil

from pulse.lib.logger import get_logger

logger = get_logger(__name__)

Sampler = Callable[[], Mapping[str, float]]


@dataclass(frozen=True)
class Sample:
    """A snapshot paired with the poll count that produced it."""

    gauges: dict[str, float] = field(default_factory=dict)
    poll_count: int = 0


class RuntimeSampler:
    """Read memory, CPU, thread and GC statistics of the current process."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()
        # Prime the CPU counter; the first call always reports 0.0.
        self._process.cpu_percent(interval=None)

    def __call__(self) -> dict[str, float]:
        with self._process.oneshot():
            memory = self._process.memory_info()
            cpu_times = self._process.cpu_times()
            values: dict[str, float] = {
                "RSS": float(memory.rss),
                "VMS": float(memory.vms),
                "CPUPercent": self._process.cpu_percent(interval=None),
                "CPUUser": cpu_times.user,
                "CPUSystem": cpu_times.system,
                "NumThreads": float(self._process.num_threads()),
            }
            if hasattr(self._process, "num_fds"):
                values["NumFDs"] = float(self._process.num_fds())

        gen0, gen1, gen2 = gc.get_count()
        stats = gc.get_stats()
        values.update(
            {
                "GCGen0": float(gen0),
                "GCGen1": float(gen1),
                "GCGen2": float(gen2),
                "GCCollections": float(sum(item["collections"] for item in stats)),
                "GCCollected": float(sum(item["collected"] for item in stats)),
                "GCUncollectable": float(sum(item["uncollectable"] for item in stats)),
                "RandomValue": random.random(),
            }
        )
        return values


class Collector:
    """Own the latest snapshot and the count of completed polls.

    ``poll`` swaps in a new snapshot and bumps the count under one lock, and
    ``read`` copies both under the same lock, so readers always see a matching
    pair and the count never goes backwards.
    """

    def __init__(self, sampler: Sampler | None = None) -> None:
        self._sampler: Sampler = sampler if sampler is not None else RuntimeSampler()
        self._lock = threading.Lock()
        self._snapshot: dict[str, float] = {}
        self._poll_count = 0

    def poll(self) -> int:
        """Take a fresh sample, replace the snapshot and return the new poll count."""

        values: dict[str, float] = {}
        for name, raw in self._sampler().items():
            if not name or "/" in name:
                logger.warning("agent.poll.invalid_name", extra={"metric": name})
                continue
            value = float(raw)
            if not math.isfinite(value):
                logger.warning("agent.poll.non_finite", extra={"metric": name, "value": repr(value)})
                continue
            values[name] = value

        with self._lock:
            self._snapshot = values
            self._poll_count += 1
            return self._poll_count

    def read(self) -> Sample:
        with self._lock:
            return Sample(gauges=dict(self._snapshot), poll_count=self._poll_count)

    @property
    def poll_count(self) -> int:
        with self._lock:
            return self._poll_count
