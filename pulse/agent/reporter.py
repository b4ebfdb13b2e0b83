"""HTTP client that pushes a sample to the collector server, one metric per request."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from urllib.parse import quote

import httpx

from pulse.agent.collector import Sample
from pulse.config import normalize_base_url
from pulse.lib.logger import get_logger
from pulse.lib.values import MetricKind, format_gauge

logger = get_logger(__name__)

POLL_COUNT_METRIC = "PollCount"
DEFAULT_TIMEOUT = 5.0


class ReportError(RuntimeError):
    """Raised when a single metric could not be delivered to the server."""

    def __init__(self, kind: MetricKind, name: str, reason: str, *, status: int | None = None) -> None:
        super().__init__(f"failed to send {kind.value} metric {name}: {reason}")
        self.kind = kind
        self.name = name
        self.status = status


class Reporter(AbstractAsyncContextManager["Reporter"]):
    """Deliver samples to ``POST /update/{kind}/{name}/{value}``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "Reporter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        await self.close()

    @property
    def closed(self) -> bool:
        return self._client is None or self._client.is_closed

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        """Return the open client, creating a fresh one after ``close``."""

        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)
        return self._client

    async def report(self, sample: Sample) -> int:
        """Send every gauge of the sample, then the poll count, stopping at the first failure.

        Returns the number of metrics delivered. Nothing is retried; a failure
        raises ``ReportError`` and the rest of the sample is dropped.
        """

        sent = 0
        for name in sorted(sample.gauges):
            await self.send(MetricKind.GAUGE, name, format_gauge(sample.gauges[name]))
            sent += 1
        await self.send(MetricKind.COUNTER, POLL_COUNT_METRIC, str(sample.poll_count))
        return sent + 1

    async def send(self, kind: MetricKind, name: str, value: str) -> None:
        path = f"/update/{kind.value}/{quote(name, safe='')}/{quote(value, safe='')}"
        try:
            response = await self._get_client().post(path, headers={"Content-Type": "text/plain"})
        except httpx.TimeoutException as exc:
            raise ReportError(kind, name, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ReportError(kind, name, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise ReportError(
                kind,
                name,
                f"server returned status {response.status_code}",
                status=response.status_code,
            )
        logger.debug("agent.send.ok", extra={"kind": kind.value, "metric": name, "value": value})
