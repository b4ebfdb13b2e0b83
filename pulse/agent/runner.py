"""Agent lifecycle: independent poll and report loops with explicit start/stop."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from pulse.agent.collector import Collector
from pulse.agent.reporter import ReportError, Reporter
from pulse.config import AgentSettings
from pulse.lib.logger import get_logger

logger = get_logger(__name__)


class Agent:
    """Drive a Collector and a Reporter on two unsynchronized timers."""

    def __init__(
        self,
        collector: Collector,
        reporter: Reporter,
        *,
        poll_interval: float,
        report_interval: float,
    ) -> None:
        if poll_interval <= 0 or report_interval <= 0:
            raise ValueError("Poll and report intervals must be positive")
        self._collector = collector
        self._reporter = reporter
        self.poll_interval = poll_interval
        self.report_interval = report_interval
        self._stop: asyncio.Event | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @classmethod
    def from_settings(cls, settings: AgentSettings, collector: Collector | None = None) -> "Agent":
        reporter = Reporter(settings.server_url, timeout=settings.request_timeout)
        return cls(
            collector or Collector(),
            reporter,
            poll_interval=settings.poll_interval,
            report_interval=settings.report_interval,
        )

    @property
    def is_running(self) -> bool:
        return bool(self._tasks) and not all(task.done() for task in self._tasks)

    async def start(self) -> None:
        if self.is_running:
            return
        self._stop = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name="agent-poll"),
            asyncio.create_task(self._report_loop(), name="agent-report"),
        ]
        logger.info(
            "agent.started",
            extra={
                "server_url": self._reporter.base_url,
                "poll_interval": self.poll_interval,
                "report_interval": self.report_interval,
            },
        )

    async def stop(self) -> None:
        """Signal both loops, wait for them to finish and close the HTTP client."""

        if self._stop is not None:
            self._stop.set()
        tasks, self._tasks = self._tasks, []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                logger.error(
                    "agent.task.failed",
                    extra={"task": task.get_name()},
                    exc_info=(type(result), result, result.__traceback__),
                )
        await self._reporter.close()
        logger.info("agent.stopped", extra={"poll_count": self._collector.poll_count})

    async def poll_once(self) -> int | None:
        """Run one sampling pass off the event loop; return the new poll count or None on failure."""

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._collector.poll)
        except Exception:
            logger.exception("agent.poll.failed")
            return None

    async def report_once(self) -> bool:
        """Push the latest sample; return False when the cycle was skipped or aborted."""

        sample = self._collector.read()
        if sample.poll_count == 0:
            logger.info("agent.report.skipped", extra={"reason": "no_completed_poll"})
            return False

        try:
            sent = await self._reporter.report(sample)
        except ReportError as exc:
            logger.warning(
                "agent.report.failed",
                extra={
                    "kind": exc.kind.value,
                    "metric": exc.name,
                    "status": exc.status,
                    "reason": str(exc),
                    "poll_count": sample.poll_count,
                },
            )
            return False

        logger.info("agent.report.sent", extra={"metrics": sent, "poll_count": sample.poll_count})
        return True

    async def _poll_loop(self) -> None:
        async for _ in self._ticks(self.poll_interval):
            await self.poll_once()

    async def _report_loop(self) -> None:
        async for _ in self._ticks(self.report_interval):
            try:
                await self.report_once()
            except Exception:
                logger.exception("agent.report.failed")

    async def _ticks(self, interval: float) -> AsyncIterator[float]:
        """Yield at fixed-rate deadlines until stop is requested.

        Deadlines advance from the previous deadline, not from when the work
        finished; ticks that fall due while work is still running are dropped.
        """

        assert self._stop is not None
        stop = self._stop
        loop = asyncio.get_running_loop()
        deadline = loop.time() + interval
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=max(deadline - loop.time(), 0))
            except asyncio.TimeoutError:
                pass
            else:
                return
            yield deadline
            now = loop.time()
            deadline += interval
            if deadline <= now:
                deadline += ((now - deadline) // interval + 1) * interval
