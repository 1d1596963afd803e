"""Configuration helpers for the DNC checker and its relay proxy."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Endpoint

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DNC_CHECKER_CONFIG"

DEFAULT_ENDPOINTS: List[Endpoint] = [
    Endpoint("tcpa", "https://api.uspeoplesearch.net/tcpa/v1"),
    Endpoint("person", "https://api.uspeoplesearch.net/person/v3"),
    Endpoint("premium", "https://premium_lookup-1-h4761841.deta.app/person"),
    Endpoint("report", "https://api.uspeoplesearch.net/tcpa/report"),
]

# The relay only knows the first three upstreams.
RELAY_ENDPOINTS: Dict[str, str] = {endpoint.name: endpoint.url for endpoint in DEFAULT_ENDPOINTS[:3]}
RELAY_DEFAULT_ENDPOINT = "tcpa"

DEFAULT_USER_AGENT = "DNC-Checker/1.0"
RELAY_USER_AGENT = "DNC-Checker-Proxy/1.0"
DEFAULT_STATE_FILE = Path("~/.dnc_checker/state.json")


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid JSON: {exc}") from exc
    else:
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


def iter_enabled_endpoint_configs(config: Mapping[str, Any]) -> Iterable[Dict[str, Any]]:
    endpoints = config.get("endpoints", [])
    for endpoint in endpoints:
        if endpoint.get("enabled", True):
            yield endpoint
        else:
            LOGGER.debug("Skipping disabled endpoint %s", endpoint.get("name"))


@dataclass
class CheckerSettings:
    """Resolved runtime settings for the lookup client and orchestrator."""

    endpoints: List[Endpoint] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    request_delay_seconds: float = 0.15
    timeout_seconds: float = 10.0
    max_retries: int = 2
    user_agent: str = DEFAULT_USER_AGENT
    relay_url: Optional[str] = None
    state_file: Path = DEFAULT_STATE_FILE

    @property
    def state_path(self) -> Path:
        return Path(self.state_file).expanduser()


@dataclass
class RelaySettings:
    """Settings for the relay proxy, read from the environment."""

    host: str = "0.0.0.0"
    port: int = 3000
    timeout_seconds: float = 10.0
    user_agent: str = RELAY_USER_AGENT
    endpoints: Dict[str, str] = field(default_factory=lambda: dict(RELAY_ENDPOINTS))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelaySettings":
        environ = os.environ if environ is None else environ
        port_text = environ.get("PORT") or "3000"
        try:
            port = int(port_text)
        except ValueError as exc:
            raise ConfigurationError(f"PORT must be an integer, got '{port_text}'") from exc
        return cls(host=environ.get("HOST") or "0.0.0.0", port=port)


