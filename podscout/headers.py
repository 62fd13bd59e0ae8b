"""Request headers mimicking the Spotify web player."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .config import Settings
from .errors import MissingCredentialsError

logger = logging.getLogger(__name__)

HeaderSet = Mapping[str, str]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "accept": "application/json",
        "accept-language": "en",
        "app-platform": "WebPlayer",
        "content-type": "application/json;charset=UTF-8",
        "origin": "https://open.spotify.com",
        "priority": "u=1, i",
        "referer": "https://open.spotify.com/",
        "sec-ch-ua": '"Chromium";v="142", "Google Chrome";v="142", "Not_A Brand";v="99"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-site",
        "spotify-app-version": "1.2.78.120.g186ece09",
        "user-agent": DEFAULT_USER_AGENT,
    }
)


def build_authorization_header(value: str | None) -> str:
    """Return ``value`` as a bearer credential, adding the prefix if needed."""

    if not value or not isinstance(value, str):
        return ""
    trimmed = value.strip()
    if trimmed.lower().startswith("bearer"):
        return trimmed
    return f"Bearer {trimmed}"


def load_header_overrides(path: Path) -> dict[str, Any]:
    """Read header overrides from ``path``; anything unusable means no overrides."""

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring invalid header overrides in %s: %s", path, exc)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("Ignoring header overrides in %s: expected a JSON object", path)
        return {}
    return parsed


def build_request_headers(
    settings: Settings, overrides: Mapping[str, Any] | None = None
) -> HeaderSet:
    """Overlay ``overrides`` on the compiled defaults and settings credentials.

    Keys are lowercased, values trimmed, and empty values dropped.
    """

    headers: dict[str, str] = dict(DEFAULT_HEADERS)
    headers["authorization"] = build_authorization_header(settings.spotify_authorization)
    headers["client-token"] = (settings.spotify_client_token or "").strip()
    if settings.user_agent:
        headers["user-agent"] = settings.user_agent.strip()

    for key, value in (overrides or {}).items():
        if isinstance(value, str) and value.strip():
            headers[str(key).lower()] = value.strip()

    return MappingProxyType({key: value for key, value in headers.items() if value})


def validate_auth_headers(headers: HeaderSet) -> None:
    """Fail fast when the credentials Spotify requires are absent."""

    missing: list[str] = []
    if not headers.get("authorization"):
        missing.append(
            "authorization (Bearer token). Supply SPOTIFY_AUTHORIZATION env var "
            "or data/headers.json"
        )
    if not headers.get("client-token"):
        missing.append(
            "client-token. Supply SPOTIFY_CLIENT_TOKEN env var or data/headers.json"
        )

    if missing:
        raise MissingCredentialsError(
            f"Missing required Spotify auth headers: {'; '.join(missing)}. "
            "Requests will fail with 401 until these are provided."
        )
