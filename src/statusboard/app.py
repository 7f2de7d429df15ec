"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiohttp
import structlog
from fastapi import FastAPI

from statusboard import __version__
from statusboard.config import Settings
from statusboard.events import BroadcastHub, EventBus
from statusboard.middleware.cors import configure_cors
from statusboard.middleware.logging import RequestLoggingMiddleware
from statusboard.registry import WatcherRegistry
from statusboard.rendering import TemplateRenderer
from statusboard.routes import events, health, pages
from statusboard.services import AdapterTable, HttpJsonClient, build_adapters
from statusboard.subscribers import load_subscribers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Loads the subscriber list, builds the adapter capability table, runs
    adapter handshakes, and starts one watcher task per subscription.
    Any configuration or handshake failure propagates and aborts startup
    before a watcher runs.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info("statusboard_startup", host=settings.host, port=settings.port)

    subscribers = load_subscribers(
        Path(settings.subscribers_file),
        settings.default_intervals,
    )

    event_bus = EventBus(
        queue_size=settings.event_queue_size,
        max_subscribers=settings.event_max_subscribers,
    )
    broadcast_hub = BroadcastHub(
        event_bus,
        heartbeat_interval=settings.sse_heartbeat_interval,
    )

    async with aiohttp.ClientSession() as session:
        adapters: AdapterTable | None = app.state.adapters
        if adapters is None:
            adapters = build_adapters(
                HttpJsonClient(session, timeout=settings.http_timeout),
                settings,
            )

        registry = WatcherRegistry(
            subscribers,
            adapters,
            app.state.renderer,
            broadcast_hub.on_change,
        )
        await registry.prepare()

        app.state.event_bus = event_bus
        app.state.broadcast_hub = broadcast_hub
        app.state.registry = registry

        registry.start()

        try:
            yield
        finally:
            await registry.stop()
            await broadcast_hub.shutdown()
            logger.info("statusboard_shutdown")


def create_app(
    settings: Settings | None = None,
    adapters: AdapterTable | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        adapters: Capability table override. Built from settings if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title=settings.title,
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.adapters = adapters
    app.state.renderer = TemplateRenderer(
        settings.templates_dir,
        auto_reload=settings.debug,
    )

    configure_cors(app, settings.cors_origins)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")
    app.include_router(pages.router)

    return app
