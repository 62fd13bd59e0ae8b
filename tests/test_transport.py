"""Tests for the direct and relayed transports."""

from __future__ import annotations

import json
import sys

import httpx
import pytest

from conftest import build_settings
from podscout.envelopes import build_show_request
from podscout.errors import RelayError, TransportError
from podscout.services.transport import DirectTransport, RelayTransport, build_transport

HEADERS = {"authorization": "Bearer token", "client-token": "client"}


@pytest.mark.anyio("asyncio")
async def test_direct_transport_posts_envelope() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": {"ok": True}})

    envelope = build_show_request("https://open.spotify.com/show/abc123")
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = DirectTransport(build_settings(), http_client)
        data = await transport.send(HEADERS, envelope)

    assert data == {"data": {"ok": True}}
    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api-partner.spotify.com/pathfinder/v2/query"
    assert request.headers["authorization"] == "Bearer token"
    assert json.loads(request.content) == envelope.to_payload()


@pytest.mark.anyio("asyncio")
async def test_direct_transport_truncates_error_bodies() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="x" * 500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = DirectTransport(build_settings(), http_client)
        with pytest.raises(TransportError) as excinfo:
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))

    assert excinfo.value.status_code == 401
    assert excinfo.value.body_snippet == "x" * 200
    assert "status 401" in str(excinfo.value)


@pytest.mark.anyio("asyncio")
async def test_direct_transport_wraps_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = DirectTransport(build_settings(), http_client)
        with pytest.raises(TransportError, match="ConnectError"):
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))


@pytest.mark.anyio("asyncio")
async def test_direct_transport_rejects_non_json() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>blocked</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = DirectTransport(build_settings(), http_client)
        with pytest.raises(TransportError, match="non-JSON"):
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))


def _relay_settings():
    return build_settings(USE_SCRAPE_NINJA="true", SCRAPE_NINJA_API_KEY="relay-key")


@pytest.mark.anyio("asyncio")
async def test_relay_transport_wraps_and_unwraps() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"info": {"statusCode": 200}, "body": json.dumps({"data": {"relayed": 1}})},
        )

    envelope = build_show_request("spotify:show:abc")
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = RelayTransport(_relay_settings(), http_client)
        data = await transport.send(HEADERS, envelope)

    assert data == {"data": {"relayed": 1}}
    request = requests[0]
    assert str(request.url) == "https://scrapeninja.p.rapidapi.com/scrape"
    assert request.headers["x-rapidapi-key"] == "relay-key"
    assert request.headers["x-rapidapi-host"] == "scrapeninja.p.rapidapi.com"
    assert "authorization" not in request.headers
    body = json.loads(request.content)
    assert body["url"] == "https://api-partner.spotify.com/pathfinder/v2/query"
    assert body["method"] == "POST"
    assert body["headers"] == HEADERS
    assert json.loads(body["body"]) == envelope.to_payload()


@pytest.mark.parametrize(
    "relay_reply",
    [
        {"info": {"statusCode": 200}},
        {"body": ""},
        {"body": "not json"},
        {"body": "[1, 2]"},
        ["unexpected"],
    ],
)
@pytest.mark.anyio("asyncio")
async def test_relay_transport_requires_parsable_body(relay_reply) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=relay_reply)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = RelayTransport(_relay_settings(), http_client)
        with pytest.raises(RelayError):
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))


@pytest.mark.skipif(
    not getattr(sys, "get_int_max_str_digits", lambda: 0)(), reason="no integer digit limit"
)
@pytest.mark.anyio("asyncio")
async def test_relay_transport_rejects_body_json_python_cannot_load() -> None:
    oversized = '{"data": ' + "9" * (sys.get_int_max_str_digits() + 1) + "}"

    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"info": {"statusCode": 200}, "body": oversized})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = RelayTransport(_relay_settings(), http_client)
        with pytest.raises(RelayError):
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))


@pytest.mark.anyio("asyncio")
async def test_relay_transport_surfaces_relay_and_upstream_status() -> None:
    replies = iter(
        [
            httpx.Response(429, text="quota exceeded"),
            httpx.Response(200, json={"info": {"statusCode": 401}, "body": "denied"}),
        ]
    )

    def handler(_: httpx.Request) -> httpx.Response:
        return next(replies)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        transport = RelayTransport(_relay_settings(), http_client)
        with pytest.raises(TransportError) as relay_failure:
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))
        with pytest.raises(TransportError) as upstream_failure:
            await transport.send(HEADERS, build_show_request("spotify:show:abc"))

    assert relay_failure.value.status_code == 429
    assert "Scrape Ninja request failed with status 429" in str(relay_failure.value)
    assert not isinstance(upstream_failure.value, RelayError)
    assert upstream_failure.value.status_code == 401
    assert upstream_failure.value.body_snippet == "denied"


@pytest.mark.anyio("asyncio")
async def test_build_transport_follows_configuration() -> None:
    async with httpx.AsyncClient() as http_client:
        assert isinstance(build_transport(build_settings(), http_client), DirectTransport)
        assert isinstance(build_transport(_relay_settings(), http_client), RelayTransport)
