"""Transports delivering request envelopes to the pathfinder endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol

import httpx

from ..config import Settings
from ..envelopes import RequestEnvelope
from ..errors import RelayError, TransportError
from ..utils import truncate

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything able to deliver an envelope and return the decoded JSON object."""

    async def send(
        self, headers: Mapping[str, str], envelope: RequestEnvelope
    ) -> dict[str, Any]: ...


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


async def _post(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: Mapping[str, str],
    payload: dict[str, Any],
    label: str,
) -> httpx.Response:
    try:
        response = await client.post(url, headers=dict(headers), json=payload)
    except httpx.HTTPError as exc:
        raise TransportError(f"{label} failed: {exc.__class__.__name__}: {exc}") from exc

    if not _is_success(response.status_code):
        snippet = truncate(response.text)
        raise TransportError(
            f"{label} failed with status {response.status_code}: {snippet}",
            status_code=response.status_code,
            body_snippet=snippet,
        )
    return response


class DirectTransport:
    """POST envelopes straight to Spotify."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._url = str(settings.spotify_api_url)
        self._client = http_client

    async def send(
        self, headers: Mapping[str, str], envelope: RequestEnvelope
    ) -> dict[str, Any]:
        response = await _post(
            self._client,
            self._url,
            headers=headers,
            payload=envelope.to_payload(),
            label="Request",
        )
        try:
            data = response.json()
        except ValueError as exc:
            snippet = truncate(response.text)
            raise TransportError(
                f"Spotify returned a non-JSON response: {snippet}",
                status_code=response.status_code,
                body_snippet=snippet,
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(
                "Spotify returned unexpected JSON (not an object).",
                status_code=response.status_code,
            )
        return data


class RelayTransport:
    """Route envelopes through the Scrape Ninja relay.

    The relay performs the real POST on our behalf and answers with its own
    envelope whose ``body`` holds Spotify's response text.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.scrape_ninja_api_key:
            raise ValueError("A Scrape Ninja API key is required for the relay transport")
        self._settings = settings
        self._client = http_client

    def _relay_headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "x-rapidapi-host": self._settings.scrape_ninja_host,
            "x-rapidapi-key": self._settings.scrape_ninja_api_key or "",
        }

    async def send(
        self, headers: Mapping[str, str], envelope: RequestEnvelope
    ) -> dict[str, Any]:
        relay_payload = {
            "url": str(self._settings.spotify_api_url),
            "method": "POST",
            "headers": dict(headers),
            "body": json.dumps(envelope.to_payload()),
        }
        response = await _post(
            self._client,
            str(self._settings.scrape_ninja_endpoint),
            headers=self._relay_headers(),
            payload=relay_payload,
            label="Scrape Ninja request",
        )

        try:
            result = response.json()
        except ValueError as exc:
            raise RelayError(
                "Scrape Ninja response was not valid JSON.",
                status_code=response.status_code,
                body_snippet=truncate(response.text),
            ) from exc
        if not isinstance(result, dict):
            raise RelayError("Scrape Ninja response did not include a parsable body.")

        info = result.get("info")
        inner_status = info.get("statusCode") if isinstance(info, dict) else None
        body = result.get("body")
        if isinstance(inner_status, int) and not _is_success(inner_status):
            snippet = truncate(body if isinstance(body, str) else "")
            raise TransportError(
                f"Request failed with status {inner_status}: {snippet}",
                status_code=inner_status,
                body_snippet=snippet,
            )

        if not isinstance(body, str) or not body.strip():
            raise RelayError("Scrape Ninja response did not include a parsable body.")
        try:
            parsed = json.loads(body)
        except ValueError as exc:
            raise RelayError(
                "Scrape Ninja response did not include a parsable body.",
                body_snippet=truncate(body),
            ) from exc
        if not isinstance(parsed, dict):
            raise RelayError("Scrape Ninja response did not include a parsable body.")
        return parsed


def build_transport(settings: Settings, http_client: httpx.AsyncClient) -> Transport:
    """Return the transport selected by ``USE_SCRAPE_NINJA``."""

    if settings.use_scrape_ninja:
        logger.info("Routing Spotify requests through Scrape Ninja")
        return RelayTransport(settings, http_client)
    return DirectTransport(settings, http_client)
