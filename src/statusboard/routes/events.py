"""Live update streams for dashboard viewers."""

from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, HTTPException, Query, Request, WebSocket, status
from sse_starlette.sse import EventSourceResponse

if TYPE_CHECKING:
    from statusboard.events.hub import BroadcastHub

router = APIRouter(prefix="/events", tags=["events"])

ServiceFilter = Literal["github", "lastfm", "steam", "*"]


@router.get("/stream")
async def event_stream(
    request: Request,
    service: ServiceFilter = Query(
        default="*",
        description="Only stream updates for this service",
    ),
) -> EventSourceResponse:
    """Stream dashboard updates via Server-Sent Events.

    Each change is sent as an ``update`` event whose data is
    ``{"name", "service", "html"}``. Heartbeats are sent while idle.

    Args:
        request: FastAPI request object.
        service: Service filter. Use "*" for all services.

    Returns:
        SSE response stream with updates and heartbeats.
    """
    hub: BroadcastHub = request.app.state.broadcast_hub
    bus = request.app.state.event_bus
    if bus.subscriber_count >= request.app.state.settings.event_max_subscribers:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Too many viewers",
        )

    return EventSourceResponse(
        hub.create_sse_generator(service),
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.websocket("/ws")
async def event_socket(websocket: WebSocket, service: ServiceFilter = "*") -> None:
    """Stream dashboard updates over a WebSocket.

    Messages are ``{"event": "update", "data": {"name", "service", "html"}}``
    plus periodic heartbeats.

    Args:
        websocket: Incoming WebSocket connection.
        service: Service filter. Use "*" for all services.
    """
    hub: BroadcastHub = websocket.app.state.broadcast_hub
    bus = websocket.app.state.event_bus
    if bus.subscriber_count >= websocket.app.state.settings.event_max_subscribers:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await websocket.accept()
    await hub.stream_websocket(websocket, service)
