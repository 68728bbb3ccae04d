from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gtfs_rt_visualizer.adapters.api.controllers.vehicles import router as vehicles_router
from gtfs_rt_visualizer.app.services.visualizer_service import VisualizerService
from gtfs_rt_visualizer.domain.exceptions import VisualizerError

logger = logging.getLogger(__name__)


def create_app(service: VisualizerService, *, manage_service: bool = True) -> FastAPI:
    """Build the API around an already configured service.

    With ``manage_service`` the app lifespan starts polling on startup and
    stops it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_service:
            service.start()
        try:
            yield
        finally:
            if manage_service:
                await service.stop()

    app = FastAPI(title="GTFS-realtime Visualizer", lifespan=lifespan)
    app.state.visualizer_service = service
    app.include_router(vehicles_router)

    @app.exception_handler(Exception)
    async def error_as_json(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request to %s failed", request.url.path)
        # Only our own errors carry messages meant for clients.
        if isinstance(exc, VisualizerError):
            content = {"detail": str(exc), "error": type(exc).__name__}
        else:
            content = {"detail": "Internal Server Error", "error": "InternalError"}
        return JSONResponse(status_code=500, content=content)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
