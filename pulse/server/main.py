"""FastAPI application factory and entrypoint for the metrics collector server."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from pulse import __version__
from pulse.config import ServerSettings, get_server_settings
from pulse.lib.logger import configure_logging, get_logger
from pulse.paths import TEMPLATES_DIR
from pulse.server.routes import router
from pulse.server.storage import MemStorage

logger = get_logger(__name__)


def create_app(storage: MemStorage | None = None, settings: ServerSettings | None = None) -> FastAPI:
    """Build the collector app around an explicit storage instance."""

    settings = settings or get_server_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Pulse Metrics Collector", version=__version__)
    app.state.storage = storage if storage is not None else MemStorage()
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.settings = settings
    app.include_router(router)
    return app


def run() -> None:
    """Serve the collector with uvicorn on the configured address."""

    import uvicorn

    settings = get_server_settings()
    app = create_app(settings=settings)
    logger.info("server.starting", extra={"host": settings.host, "port": settings.port})
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
