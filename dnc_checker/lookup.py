"""HTTP lookup client that classifies numbers against the upstream DNC APIs."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from .config import DEFAULT_ENDPOINTS, DEFAULT_USER_AGENT
from .models import Endpoint, LookupResult, LookupStatus
from .phone import validate_number
from .rate_limit import LinearBackoff, Sleeper

LOGGER = logging.getLogger(__name__)

EXHAUSTED_REASON = "All API checks failed"

_DNC_FLAGS = ("dnc", "dnd", "tcpa", "doNotCall", "blocked", "restricted")


def classify_payload(payload: Any) -> Optional[LookupStatus]:
    """Interpret an upstream JSON body.

    Returns ``None`` when the payload is not conclusive, in which case the
    next endpoint should be consulted.
    """

    if not isinstance(payload, dict):
        return None
    if any(payload.get(flag) is True for flag in _DNC_FLAGS) or payload.get("wireless") is False:
        return LookupStatus.DNC
    status = payload.get("status")
    if isinstance(status, str) and status.lower() == "valid":
        return LookupStatus.CLEAN
    return None


class LookupClient:
    """Check single numbers against an ordered list of endpoints.

    Each endpoint is tried up to ``max_retries`` times with linear backoff.
    Transport errors never propagate: a number that no endpoint could
    classify is reported as ``invalid``.
    """

    def __init__(
        self,
        endpoints: Optional[Sequence[Endpoint]] = None,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        backoff: Optional[LinearBackoff] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        relay_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Sleeper = time.sleep,
        clock: Optional[Callable[[], str]] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoints: List[Endpoint] = list(endpoints if endpoints is not None else DEFAULT_ENDPOINTS)
        self._timeout_seconds = timeout_seconds
        self._max_retries = max(int(max_retries), 1)
        self._backoff = backoff or LinearBackoff()
        self._user_agent = user_agent
        self._relay_url = relay_url.rstrip("/") if relay_url else None
        self._transport = transport
        self._sleep = sleep
        self._clock = clock
        self._monotonic = monotonic
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "LookupClient":
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout_seconds,
                headers={"Accept": "application/json", "User-Agent": self._user_agent},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            LOGGER.debug("Closing lookup HTTP client")
            self._client.close()
            self._client = None

    def check(self, number: str) -> LookupResult:
        LOGGER.info("Checking: %s", number)

        validation = validate_number(number)
        if not validation.valid:
            return self._result(number, LookupStatus.INVALID, reason=validation.reason)

        client = self._ensure_client()
        for endpoint in self.endpoints:
            payload = self._fetch(client, endpoint, number)
            if payload is None:
                continue
            status = classify_payload(payload)
            if status is None:
                LOGGER.debug("Inconclusive response from %s for %s", endpoint.name, number)
                continue
            return self._result(number, status, source=endpoint.name, data=payload)

        return self._result(number, LookupStatus.INVALID, reason=EXHAUSTED_REASON)

    def _fetch(self, client: httpx.Client, endpoint: Endpoint, number: str) -> Optional[Any]:
        """Return the decoded JSON body from ``endpoint`` or ``None`` once retries run out."""

        url, params = self._request_target(endpoint, number)
        for attempt in range(1, self._max_retries + 1):
            try:
                LOGGER.debug("Attempt %s: %s - %s", attempt, endpoint.name, url)
                payload = self._get_json(client, url, params)
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.info("%s attempt %s failed: %s", endpoint.name, attempt, exc)
                if attempt < self._max_retries:
                    self._backoff.pause(attempt, self._sleep)
                continue
            LOGGER.debug("Response from %s: %s", endpoint.name, payload)
            return payload
        return None

    def _get_json(self, client: httpx.Client, url: str, params: Dict[str, str]) -> Any:
        """GET ``url`` and decode its JSON body within ``timeout_seconds`` overall.

        The client timeouts only bound each network operation, so a server
        that trickles bytes is cut off here once the deadline passes.
        """

        deadline = self._monotonic() + self._timeout_seconds
        body = bytearray()
        with client.stream("GET", url, params=params) as response:
            self._check_deadline(deadline, response.request)
            response.raise_for_status()
            for chunk in response.iter_bytes():
                self._check_deadline(deadline, response.request)
                body.extend(chunk)
        return json.loads(bytes(body))

    def _check_deadline(self, deadline: float, request: httpx.Request) -> None:
        if self._monotonic() > deadline:
            raise httpx.ReadTimeout(f"No complete response within {self._timeout_seconds}s", request=request)

    def _request_target(self, endpoint: Endpoint, number: str) -> tuple[str, Dict[str, str]]:
        if self._relay_url:
            return f"{self._relay_url}/api/check", {"number": number, "endpoint": endpoint.name}
        return endpoint.url, {"x": number}

    def _result(self, number: str, status: LookupStatus, **fields: Any) -> LookupResult:
        if self._clock is not None:
            fields["timestamp"] = self._clock()
        return LookupResult(number=number, status=status, **fields)
