from __future__ import annotations

from typing import Dict, List

import httpx
import pytest

from dnc_checker.lookup import EXHAUSTED_REASON, LookupClient, classify_payload
from dnc_checker.models import Endpoint, LookupStatus
from dnc_checker.phone import INVALID_AREA_CODE, INVALID_FORMAT

ENDPOINTS = [
    Endpoint("first", "https://first.example/check"),
    Endpoint("second", "https://second.example/check"),
]

NUMBER = "+12125550100"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, routes: Dict[str, List[object]]) -> None:
        self.requests: List[httpx.Request] = []
        self._routes = {host: list(responses) for host, responses in routes.items()}
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self._routes[request.url.host]
        outcome = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(request)
        if isinstance(outcome, int):
            return httpx.Response(outcome)
        if isinstance(outcome, bytes):
            return httpx.Response(200, content=outcome)
        return httpx.Response(200, json=outcome)

    def hosts(self) -> List[str]:
        return [request.url.host for request in self.requests]


def make_client(transport: httpx.BaseTransport, sleeps: List[float], **kwargs) -> LookupClient:
    return LookupClient(ENDPOINTS, transport=transport, sleep=sleeps.append, **kwargs)


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"dnc": True}, LookupStatus.DNC),
        ({"dnd": True, "status": "valid"}, LookupStatus.DNC),
        ({"tcpa": True}, LookupStatus.DNC),
        ({"doNotCall": True}, LookupStatus.DNC),
        ({"blocked": True}, LookupStatus.DNC),
        ({"restricted": True}, LookupStatus.DNC),
        ({"wireless": False, "status": "valid"}, LookupStatus.DNC),
        ({"status": "valid"}, LookupStatus.CLEAN),
        ({"status": "VALID", "wireless": True}, LookupStatus.CLEAN),
        ({"dnc": "true", "status": "unknown"}, None),
        ({"status": "invalid"}, None),
        ({}, None),
        (["valid"], None),
        (None, None),
    ],
)
def test_classify_payload(payload, expected) -> None:
    assert classify_payload(payload) == expected


def test_dnc_answer_short_circuits_remaining_endpoints() -> None:
    transport = RecordingTransport({"first.example": [{"dnc": True}], "second.example": [{"status": "valid"}]})
    sleeps: List[float] = []

    with make_client(transport, sleeps) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.DNC
    assert result.source == "first"
    assert result.data == {"dnc": True}
    assert result.reason is None
    assert transport.hosts() == ["first.example"]
    assert sleeps == []


def test_inconclusive_response_falls_through_to_next_endpoint() -> None:
    transport = RecordingTransport(
        {"first.example": [{"status": "unknown"}], "second.example": [{"status": "Valid"}]}
    )

    with make_client(transport, []) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.CLEAN
    assert result.source == "second"
    assert transport.hosts() == ["first.example", "second.example"]


def test_failed_attempt_is_retried_after_linear_backoff() -> None:
    transport = RecordingTransport(
        {"first.example": [500, {"status": "valid"}], "second.example": [{"dnc": True}]}
    )
    sleeps: List[float] = []

    with make_client(transport, sleeps) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.CLEAN
    assert result.source == "first"
    assert transport.hosts() == ["first.example", "first.example"]
    assert sleeps == [pytest.approx(0.15)]


def test_non_2xx_responses_exhaust_endpoint_before_moving_on() -> None:
    transport = RecordingTransport({"first.example": [503], "second.example": [{"dnc": True}]})
    sleeps: List[float] = []

    with make_client(transport, sleeps) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.DNC
    assert result.source == "second"
    assert transport.hosts() == ["first.example", "first.example", "second.example"]
    assert sleeps == [pytest.approx(0.15)]


def test_malformed_json_counts_as_failed_attempt() -> None:
    transport = RecordingTransport(
        {"first.example": [b"<html>"], "second.example": [{"status": "valid"}]}
    )

    with make_client(transport, []) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.CLEAN
    assert result.source == "second"


def test_all_endpoints_failing_reports_invalid() -> None:
    transport = RecordingTransport(
        {
            "first.example": [httpx.ConnectError("connection refused")],
            "second.example": [httpx.ReadTimeout("timed out")],
        }
    )
    sleeps: List[float] = []

    with make_client(transport, sleeps, max_retries=3) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.INVALID
    assert result.reason == EXHAUSTED_REASON
    assert result.source is None
    assert len(transport.requests) == 6
    assert sleeps == [pytest.approx(0.15), pytest.approx(0.30)] * 2


def test_response_trickling_past_the_deadline_counts_as_failed_attempt() -> None:
    elapsed = [0.0]

    def trickle(request: httpx.Request) -> httpx.Response:
        def body():
            yield b'{"status": '
            elapsed[0] += 11.0
            yield b'"valid"}'

        return httpx.Response(200, content=body())

    transport = RecordingTransport({"first.example": [trickle], "second.example": [{"dnc": True}]})
    sleeps: List[float] = []

    with make_client(transport, sleeps, monotonic=lambda: elapsed[0]) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.DNC
    assert result.source == "second"
    assert transport.hosts() == ["first.example", "first.example", "second.example"]
    assert sleeps == [pytest.approx(0.15)]


def test_streamed_response_within_the_deadline_is_accepted() -> None:
    def chunked(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=iter([b'{"status": ', b'"valid"}']))

    transport = RecordingTransport({"first.example": [chunked], "second.example": [{"dnc": True}]})

    with make_client(transport, []) as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.CLEAN
    assert result.source == "first"


def test_invalid_numbers_never_touch_the_network() -> None:
    transport = RecordingTransport({"first.example": [{"dnc": True}], "second.example": [{"dnc": True}]})

    with make_client(transport, []) as client:
        bad_format = client.check("555")
        bad_area = client.check("+11005550100")

    assert bad_format.status is LookupStatus.INVALID
    assert bad_format.reason == INVALID_FORMAT
    assert bad_area.status is LookupStatus.INVALID
    assert bad_area.reason == INVALID_AREA_CODE
    assert transport.requests == []


def test_request_carries_number_and_headers() -> None:
    transport = RecordingTransport({"first.example": [{"status": "valid"}], "second.example": [{}]})

    with make_client(transport, []) as client:
        client.check(NUMBER)

    request = transport.requests[0]
    assert request.url.path == "/check"
    assert request.url.params["x"] == NUMBER
    assert request.headers["User-Agent"] == "DNC-Checker/1.0"
    assert request.headers["Accept"] == "application/json"


def test_relay_url_routes_every_lookup_through_the_relay() -> None:
    transport = RecordingTransport({"relay.example": [{"status": "unknown"}]})

    with make_client(transport, [], relay_url="http://relay.example/") as client:
        result = client.check(NUMBER)

    assert result.status is LookupStatus.INVALID
    assert result.reason == EXHAUSTED_REASON
    assert [request.url.path for request in transport.requests] == ["/api/check", "/api/check"]
    assert [request.url.params["endpoint"] for request in transport.requests] == ["first", "second"]
    assert all(request.url.params["number"] == NUMBER for request in transport.requests)


def test_clock_controls_result_timestamp() -> None:
    transport = RecordingTransport({"first.example": [{"status": "valid"}], "second.example": [{}]})

    with make_client(transport, [], clock=lambda: "2024-01-01T00:00:00.000Z") as client:
        result = client.check(NUMBER)

    assert result.timestamp == "2024-01-01T00:00:00.000Z"


def test_close_is_idempotent() -> None:
    client = LookupClient(ENDPOINTS, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    client.close()
    client.check(NUMBER)
    client.close()
    client.close()
