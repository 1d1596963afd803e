"""Stateless HTTP relay in front of the upstream lookup APIs."""
from __future__ import annotations

from .app import create_app

__all__ = ["create_app", "serve"]


def serve(host: str | None = None, port: int | None = None, log_level: str = "info") -> None:
    """Run the relay with uvicorn using ``PORT``/``HOST`` from the environment by default."""

    import uvicorn

    from ..config import RelaySettings

    settings = RelaySettings.from_env()
    if host:
        settings.host = host
    if port:
        settings.port = port
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=log_level.lower())
