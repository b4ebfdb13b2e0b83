"""Pytest fixtures for collector server and agent tests."""

from collections.abc import AsyncIterator
import os

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("ADDRESS", "localhost:8080")
os.environ.setdefault("LOG_LEVEL", "INFO")

from pulse.config import ServerSettings
from pulse.server import MemStorage, create_app


@pytest.fixture()
def storage() -> MemStorage:
    """Return a fresh, empty metric storage."""
    return MemStorage()


@pytest.fixture()
def app(storage: MemStorage) -> FastAPI:
    """Return a collector app bound to the test's storage instance."""
    return create_app(storage=storage, settings=ServerSettings())


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an `httpx.AsyncClient` wired straight to the ASGI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def asgi_transport(app: FastAPI) -> ASGITransport:
    """Transport that lets agent-side clients talk to the in-process server."""
    return ASGITransport(app=app)
