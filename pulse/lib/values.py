"""Metric kinds, typed metric values and their wire representation."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PATTERN = re.compile(r"[+-]?\d+")


class MetricKind(str, Enum):
    """Update semantics of a metric, spelled the way it appears in URLs."""

    GAUGE = "gauge"
    COUNTER = "counter"

    @classmethod
    def parse(cls, raw: str) -> "MetricKind | None":
        try:
            return cls(raw)
        except ValueError:
            return None


class GaugeValue(BaseModel):
    """Instantaneous measurement; a new value replaces the old one."""

    kind: Literal["gauge"] = "gauge"
    value: float

    model_config = {"frozen": True}

    def format(self) -> str:
        return format_gauge(self.value)


class CounterValue(BaseModel):
    """Cumulative measurement; updates carry deltas that are summed."""

    kind: Literal["counter"] = "counter"
    value: int

    model_config = {"frozen": True}

    def format(self) -> str:
        return str(self.value)


MetricValue = Annotated[Union[GaugeValue, CounterValue], Field(discriminator="kind")]


def parse_gauge(raw: str) -> float:
    """Parse a decimal float literal, rejecting anything that is not finite.

    Deliberately stricter than ``float()`` and strtod-style parsers: ``nan``,
    ``inf``/``infinity``, hexadecimal floats (``0x1p-2``), ``_`` digit
    separators and literals that overflow to infinity are all refused, so
    every stored gauge can be formatted back as a plain decimal.
    """

    if not _FLOAT_PATTERN.fullmatch(raw):
        raise ValueError(f"'{raw}' is not a decimal number")
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"'{raw}' is out of range for a gauge")
    return value


def parse_counter(raw: str) -> int:
    """Parse a base-10 integer literal that fits a signed 64-bit integer."""

    if not _INT_PATTERN.fullmatch(raw):
        raise ValueError(f"'{raw}' is not an integer")
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"'{raw}' is out of range for a counter")
    return value


def parse_value(kind: MetricKind, raw: str) -> MetricValue:
    if kind is MetricKind.GAUGE:
        return GaugeValue(value=parse_gauge(raw))
    return CounterValue(value=parse_counter(raw))


def format_gauge(value: float) -> str:
    """Render the shortest round-tripping decimal form without exponent or trailing zeros.

    ``95.5`` stays ``95.5``, ``1.0`` becomes ``1`` and ``1e16`` becomes
    ``10000000000000000``.
    """

    if not math.isfinite(value):
        return repr(value)
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
