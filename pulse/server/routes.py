"""HTTP routes for metric updates, value queries and the listing page."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from pulse.lib.logger import get_logger
from pulse.server.service import (
    MetricError,
    apply_update,
    list_metrics,
    parse_update,
    query_value,
)
from pulse.server.storage import MemStorage

router = APIRouter()

logger = get_logger(__name__)


async def get_storage(request: Request) -> MemStorage:
    storage: MemStorage | None = getattr(request.app.state, "storage", None)
    if storage is None:
        raise RuntimeError("Metric storage not configured on application state")
    return storage


def _templates(request: Request) -> Jinja2Templates:
    templates: Jinja2Templates = request.app.state.templates  # type: ignore[attr-defined]
    return templates


@router.post("/update/{kind}/{name}/{value}", response_class=PlainTextResponse)
async def update_metric(
    kind: str,
    name: str,
    value: str,
    storage: MemStorage = Depends(get_storage),
) -> PlainTextResponse:
    """Apply one gauge or counter update."""

    try:
        update = parse_update(kind, name, value)
        apply_update(storage, update)
    except MetricError as exc:
        logger.info(
            "metrics.update.rejected",
            extra={"kind": kind, "metric": name, "raw_value": value, "reason": str(exc)},
        )
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    return PlainTextResponse("OK")


@router.get("/value/{kind}/{name}", response_class=PlainTextResponse)
async def get_metric_value(
    kind: str,
    name: str,
    storage: MemStorage = Depends(get_storage),
) -> PlainTextResponse:
    try:
        formatted = query_value(storage, kind, name)
    except MetricError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return PlainTextResponse(formatted)


@router.get("/", response_class=HTMLResponse)
async def metrics_page(request: Request, storage: MemStorage = Depends(get_storage)) -> HTMLResponse:
    """Render every stored gauge and counter as HTML tables."""

    context = {"page_title": "Metrics", **list_metrics(storage)}
    return _templates(request).TemplateResponse(request, "index.html", context)


@router.get("/health", tags=["system"], summary="Health check")
async def health_check() -> JSONResponse:
    """Return liveness response for uptime monitoring."""

    return JSONResponse({"ok": True, "data": {"status": "healthy"}})
