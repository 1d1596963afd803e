"""Factory helpers for constructing checker components from configuration."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Mapping, Optional

import httpx

from .config import (
    CONFIG_ENV_VAR,
    CheckerSettings,
    ConfigurationError,
    iter_enabled_endpoint_configs,
    load_configuration,
)
from .lookup import LookupClient
from .models import Endpoint
from .rate_limit import LinearBackoff
from .storage import JsonFileStateStore


def build_endpoints(config: Mapping[str, Any]) -> List[Endpoint]:
    """Build the ordered endpoint list defined in the configuration file."""

    endpoints: List[Endpoint] = []
    for endpoint_cfg in iter_enabled_endpoint_configs(config):
        name = endpoint_cfg.get("name")
        url = endpoint_cfg.get("url")
        if not name or not url:
            raise ConfigurationError("Endpoint configuration requires both 'name' and 'url'")
        endpoints.append(Endpoint(name=str(name), url=str(url)))
    if not endpoints:
        raise ConfigurationError("At least one endpoint must be enabled")
    return endpoints


def settings_from_config(config: Optional[Mapping[str, Any]] = None) -> CheckerSettings:
    """Merge a loaded configuration mapping over the built-in defaults."""

    config = config or {}
    settings = CheckerSettings()
    if "endpoints" in config:
        settings.endpoints = build_endpoints(config)
    if config.get("request_delay_ms") is not None:
        settings.request_delay_seconds = float(config["request_delay_ms"]) / 1000.0
    if config.get("timeout_seconds") is not None:
        settings.timeout_seconds = float(config["timeout_seconds"])
    if config.get("max_retries") is not None:
        settings.max_retries = int(config["max_retries"])
        if settings.max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1")
    if config.get("user_agent"):
        settings.user_agent = str(config["user_agent"])
    if config.get("relay_url"):
        settings.relay_url = str(config["relay_url"])
    if config.get("state_file"):
        settings.state_file = Path(str(config["state_file"]))
    return settings


def load_settings(path: str | Path | None = None) -> CheckerSettings:
    """Load settings from ``path`` or the ``DNC_CHECKER_CONFIG`` environment variable."""

    config_path = path or os.environ.get(CONFIG_ENV_VAR)
    if not config_path:
        return CheckerSettings()
    return settings_from_config(load_configuration(config_path))


def build_lookup_client(
    settings: CheckerSettings,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> LookupClient:
    return LookupClient(
        settings.endpoints,
        timeout_seconds=settings.timeout_seconds,
        max_retries=settings.max_retries,
        backoff=LinearBackoff(base_seconds=settings.request_delay_seconds),
        user_agent=settings.user_agent,
        relay_url=settings.relay_url,
        transport=transport,
    )


def build_state_store(settings: CheckerSettings) -> JsonFileStateStore:
    return JsonFileStateStore(settings.state_path)
