from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from gtfs_rt_visualizer.adapters.api.dependencies import get_visualizer_service
from gtfs_rt_visualizer.adapters.api.schemas.vehicles import (
    SourceSchema,
    snapshot_to_payload,
    source_to_schema,
)
from gtfs_rt_visualizer.adapters.api.websocket_listener import QueueVehicleListener
from gtfs_rt_visualizer.app.services.visualizer_service import VisualizerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["vehicles"])


@router.get("/sources", response_model=list[SourceSchema])
def list_sources(
    service: VisualizerService = Depends(get_visualizer_service),
) -> list[SourceSchema]:
    return [source_to_schema(s) for s in service.registry.snapshot()]


async def _pump(websocket: WebSocket, listener: QueueVehicleListener) -> None:
    while True:
        snapshot = await listener.next_snapshot()
        await websocket.send_json(snapshot_to_payload(snapshot))


@router.websocket("/vehicles")
async def stream_vehicles(
    websocket: WebSocket,
    service: VisualizerService = Depends(get_visualizer_service),
) -> None:
    """Send the current snapshot, then every broadcast until the client leaves."""

    await websocket.accept()

    listener = QueueVehicleListener(loop=asyncio.get_running_loop())
    service.broadcaster.add_listener(listener)
    sender: asyncio.Task[None] | None = None
    try:
        await websocket.send_json(snapshot_to_payload(service.registry.snapshot()))
        sender = asyncio.create_task(_pump(websocket, listener))
        # Incoming messages are ignored; receiving only detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("vehicle stream client disconnected")
    finally:
        service.broadcaster.remove_listener(listener)
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await sender
