"""Health check endpoints for liveness and readiness probes."""
from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from statusboard.registry import WatcherRegistry

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class WatcherCheck(BaseModel):
    """Status of a single watcher task.

    Attributes:
        name: Watcher identifier (subscriber, service, account).
        status: 'ok' while the task is running, 'failed' once it has exited.
        state: Current phase of the poll cycle.
        cycles: Completed poll cycles.
        consecutive_failures: Failed cycles since the last success.
    """

    name: str
    status: Literal["ok", "failed"]
    state: str
    cycles: int
    consecutive_failures: int


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        watchers: Per-watcher check results.
        viewers: Number of connected viewers.
    """

    status: Literal["ready", "not_ready"]
    watchers: list[WatcherCheck]
    viewers: int


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Ready once every watcher task has been started and none has exited.
    Returns 503 otherwise.

    Returns:
        Readiness status with individual watcher results.
    """
    registry: WatcherRegistry | None = getattr(request.app.state, "registry", None)
    checks: list[WatcherCheck] = []
    started = False

    if registry is not None:
        tasks = registry.tasks
        started = len(tasks) == len(registry.watchers)
        for index, watcher in enumerate(registry.watchers):
            running = index < len(tasks) and not tasks[index].done()
            checks.append(
                WatcherCheck(
                    name=watcher.name,
                    status="ok" if running else "failed",
                    state=watcher.state.value,
                    cycles=watcher.cycles,
                    consecutive_failures=watcher.consecutive_failures,
                )
            )

    hub = getattr(request.app.state, "broadcast_hub", None)
    all_ok = started and all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        watchers=checks,
        viewers=hub.active_connections if hub is not None else 0,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
