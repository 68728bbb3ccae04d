from __future__ import annotations

from fastapi.requests import HTTPConnection

from gtfs_rt_visualizer.app.services.visualizer_service import VisualizerService
from gtfs_rt_visualizer.domain.exceptions import VisualizerError


def get_visualizer_service(conn: HTTPConnection) -> VisualizerService:
    service = getattr(conn.app.state, "visualizer_service", None)
    if service is None:
        raise VisualizerError("Visualizer service not configured")
    return service
