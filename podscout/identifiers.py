"""Conversion between public Spotify URLs and native ``spotify:`` URIs."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

SPOTIFY_URI_PREFIX = "spotify:"
DEFAULT_WEB_URL = "https://open.spotify.com"
EXCLUDED_DOMAINS: tuple[str, ...] = ("patreon.com", "speaker.com")


def build_uri_from_url(url: str) -> str | None:
    """Return ``spotify:<type>:<id>`` from the first two path segments of ``url``."""

    try:
        parsed = urlsplit(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        return None

    resource_type, resource_id = segments[0], segments[1]
    return f"{SPOTIFY_URI_PREFIX}{resource_type}:{resource_id}"


def normalize_uri(uri_or_url: object) -> str | None:
    """Return a native identifier for a URI or URL, or ``None`` when impossible.

    Values already carrying the ``spotify:`` prefix are passed through without
    further validation.
    """

    if not isinstance(uri_or_url, str):
        return None
    trimmed = uri_or_url.strip()
    if not trimmed:
        return None
    if trimmed.startswith(SPOTIFY_URI_PREFIX):
        return trimmed
    return build_uri_from_url(trimmed)


def identifier_to_url(identifier: object, base_url: str = DEFAULT_WEB_URL) -> str | None:
    """Compose the public web URL for a native identifier.

    Spotify IDs may contain colons, so everything after the resource type is
    rejoined into the ID.
    """

    if not isinstance(identifier, str):
        return None
    parts = identifier.strip().split(":")
    if len(parts) < 3:
        return None

    resource_type = parts[1]
    resource_id = ":".join(parts[2:])
    if not resource_type or not resource_id:
        return None
    return f"{base_url.rstrip('/')}/{resource_type}/{resource_id}"


def is_excluded_domain(url: str, domains: Iterable[str] = EXCLUDED_DOMAINS) -> bool:
    """Return ``True`` when the URL's host is, or is below, a denylisted domain.

    URLs that cannot be parsed are not excluded.
    """

    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False

    hostname = hostname.lower()
    return any(
        hostname == domain or hostname.endswith(f".{domain}") for domain in domains
    )
