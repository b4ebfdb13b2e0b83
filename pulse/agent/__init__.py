"""Sampling agent that reports runtime statistics to the collector server."""

from pulse.agent.collector import Collector, RuntimeSampler, Sample
from pulse.agent.reporter import ReportError, Reporter
from pulse.agent.runner import Agent

__all__ = ["Agent", "Collector", "ReportError", "Reporter", "RuntimeSampler", "Sample"]
