"""Collector server: metric storage and its HTTP surface."""

from pulse.server.main import create_app
from pulse.server.routes import router
from pulse.server.storage import MemStorage

__all__ = ["MemStorage", "create_app", "router"]
