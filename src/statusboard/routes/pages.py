"""Dashboard page and snapshot endpoints for first paint."""
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from statusboard.exceptions import RenderError

if TYPE_CHECKING:
    from statusboard.registry import WatcherRegistry
    from statusboard.rendering import TemplateRenderer

logger = structlog.get_logger()

router = APIRouter(tags=["pages"])


class ServiceSnapshot(BaseModel):
    """Current output of one subscription.

    Attributes:
        service: Service type name.
        account: Account identifier on that service.
        html: Last rendered fragment, None if no data yet.
        updated_at: When the fragment last changed.
    """

    service: str
    account: str
    html: str | None
    updated_at: datetime | None


class SubscriberSnapshot(BaseModel):
    """Current output of every subscription of one subscriber."""

    name: str
    services: list[ServiceSnapshot]


def collect_snapshots(registry: "WatcherRegistry") -> list[SubscriberSnapshot]:
    """Read every subscription's cached output without touching watchers.

    Args:
        registry: Registry owning the subscribers.

    Returns:
        One entry per subscriber, services in configuration order.
    """
    result = []
    for subscriber, snapshots in registry.snapshots():
        result.append(
            SubscriberSnapshot(
                name=subscriber.name,
                services=[
                    ServiceSnapshot(
                        service=subscription.service_type.value,
                        account=subscription.account_id,
                        html=snapshot.html,
                        updated_at=snapshot.updated_at,
                    )
                    for subscription, snapshot in zip(
                        subscriber.subscriptions, snapshots, strict=True
                    )
                ],
            )
        )
    return result


@router.get("/api/v1/snapshots", response_model=list[SubscriberSnapshot])
async def list_snapshots(request: Request) -> list[SubscriberSnapshot]:
    """Return what every subscription currently shows.

    ``html`` is null for subscriptions that have not completed a
    successful cycle yet.
    """
    return collect_snapshots(request.app.state.registry)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(request: Request) -> HTMLResponse:
    """Render the dashboard with the current snapshots inlined."""
    renderer: TemplateRenderer = request.app.state.renderer
    settings = request.app.state.settings
    users = collect_snapshots(request.app.state.registry)

    try:
        html = renderer.render(
            "index",
            {"title": settings.title, "users": [u.model_dump() for u in users]},
        )
    except RenderError as e:
        logger.error("index_render_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to render dashboard",
        ) from e
    return HTMLResponse(html)
