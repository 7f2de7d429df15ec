"""CORS middleware configuration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def configure_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    """Allow cross-origin reads of snapshots and event streams.

    Does nothing when no origins are configured.

    Args:
        app: FastAPI application instance.
        allowed_origins: List of allowed origin URLs.
    """
    if not allowed_origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
