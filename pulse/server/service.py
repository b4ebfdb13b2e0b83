"""Validation and dispatch between wire requests and the metric storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pulse.lib.logger import get_logger
from pulse.lib.values import CounterValue, GaugeValue, MetricKind, MetricValue, format_gauge, parse_value
from pulse.server.storage import MemStorage


logger = get_logger(__name__)


class MetricError(Exception):
    """Base class for request errors; carries the HTTP status it maps to."""

    status_code = 400


class MetricValidationError(MetricError):
    """Raised when an update request is rejected before reaching storage."""


class InvalidKindError(MetricValidationError):
    status_code = 400

    def __init__(self, kind: str) -> None:
        super().__init__(f"Invalid metric type '{kind}'")
        self.kind = kind


class MissingNameError(MetricValidationError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__("Metric name required")


class InvalidValueError(MetricValidationError):
    status_code = 400

    def __init__(self, kind: MetricKind, raw: str) -> None:
        super().__init__(f"Invalid {kind.value} value '{raw}'")
        self.kind = kind
        self.raw = raw


class MetricNotFoundError(MetricError):
    status_code = 404

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Metric {kind}/{name} not found")
        self.kind = kind
        self.name = name


@dataclass(frozen=True)
class MetricUpdate:
    """A validated update ready to be applied to storage."""

    name: str
    metric: MetricValue

    @property
    def kind(self) -> MetricKind:
        return MetricKind(self.metric.kind)


def parse_update(kind: str, name: str, raw_value: str) -> MetricUpdate:
    """Validate an update triple in order: kind, then name, then value."""

    metric_kind = MetricKind.parse(kind)
    if metric_kind is None:
        raise InvalidKindError(kind)
    if not name:
        raise MissingNameError()
    try:
        metric = parse_value(metric_kind, raw_value)
    except ValueError as exc:
        raise InvalidValueError(metric_kind, raw_value) from exc
    return MetricUpdate(name=name, metric=metric)


def apply_update(storage: MemStorage, update: MetricUpdate) -> MetricValue:
    """Apply a validated update and return the value now stored under its key.

    A counter delta that would push the total outside int64 is rejected with
    ``InvalidValueError`` and the stored total is left as it was.
    """

    if isinstance(update.metric, GaugeValue):
        storage.update_gauge(update.name, update.metric.value)
        stored: MetricValue = update.metric
    else:
        try:
            total = storage.update_counter(update.name, update.metric.value)
        except OverflowError as exc:
            raise InvalidValueError(update.kind, str(update.metric.value)) from exc
        stored = CounterValue(value=total)

    logger.debug(
        "metrics.update.applied",
        extra={"kind": update.kind.value, "metric": update.name, "value": stored.format()},
    )
    return stored


def query_value(storage: MemStorage, kind: str, name: str) -> str:
    """Return the formatted current value of a metric."""

    metric_kind = MetricKind.parse(kind)
    if metric_kind is None:
        raise MetricNotFoundError(kind, name)
    metric = storage.get(metric_kind, name)
    if metric is None:
        raise MetricNotFoundError(kind, name)
    return metric.format()


def list_metrics(storage: MemStorage) -> dict[str, Any]:
    """Collect sorted, formatted rows of every stored metric for the listing page."""

    snapshot = storage.snapshot()
    gauges = [
        {"name": name, "value": format_gauge(value)}
        for name, value in sorted(snapshot.gauges.items())
    ]
    counters = [
        {"name": name, "value": str(value)}
        for name, value in sorted(snapshot.counters.items())
    ]
    return {"gauges": gauges, "counters": counters}
