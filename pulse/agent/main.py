"""Entrypoint running the agent until SIGINT or SIGTERM."""

from __future__ import annotations

import asyncio
import contextlib
import signal

from pulse.agent.runner import Agent
from pulse.config import AgentSettings, get_agent_settings
from pulse.lib.logger import configure_logging, get_logger

logger = get_logger(__name__)


async def serve(settings: AgentSettings, stop: asyncio.Event | None = None) -> None:
    """Run the agent until ``stop`` is set (or a termination signal arrives)."""

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    agent = Agent.from_settings(settings)
    await agent.start()
    try:
        await stop.wait()
    finally:
        await agent.stop()


def run() -> None:
    settings = get_agent_settings()
    configure_logging(settings.log_level)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    run()
