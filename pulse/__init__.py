"""Minimal telemetry pipeline: a sampling agent and an in-memory metrics collector."""

__version__ = "0.1.0"
