"""Relay proxy that forwards lookups to the upstream DNC APIs."""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import RELAY_DEFAULT_ENDPOINT, RelaySettings
from ..models import isoformat_utc, utc_now

LOGGER = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def create_app(
    settings: Optional[RelaySettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or RelaySettings.from_env()
    app = FastAPI(title="DNC Checker Relay")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/check")
    async def check(number: Optional[str] = None, endpoint: Optional[str] = None):
        if not number:
            return JSONResponse(status_code=400, content={"error": "Phone number is required"})

        target = settings.endpoints.get(endpoint or "") or settings.endpoints[RELAY_DEFAULT_ENDPOINT]
        LOGGER.info("Proxying request to: %s?x=%s", target, number)

        try:
            async with httpx.AsyncClient(timeout=settings.timeout_seconds, transport=transport) as client:
                response = await client.get(
                    target,
                    params={"x": number},
                    headers={"User-Agent": settings.user_agent},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.error("Proxy error: %s", _describe(exc))
            return JSONResponse(status_code=500, content={"error": "Proxy error", "message": _describe(exc)})

        return JSONResponse(content=payload)

    @app.get("/health")
    async def health():
        """Liveness check: process is up."""
        return {"status": "ok", "timestamp": isoformat_utc(utc_now())}

    return app
