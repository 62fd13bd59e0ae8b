"""Parsers turning pathfinder GraphQL responses into flat records.

Spotify has reshaped several of these payloads over time without versioning
them. Fields that have moved are described as ordered :class:`ResponseShape`
candidates; the first candidate that resolves wins and later ones are never
consulted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .envelopes import OperationKind
from .errors import AuthError, GenericError
from .identifiers import DEFAULT_WEB_URL, identifier_to_url
from .models import SearchResult, ShowProfile
from .utils import clean_text, dig, is_number

logger = logging.getLogger(__name__)

AUTH_ERROR_MARKER = "client is not defined"
AUTH_REMEDIATION_HINT = (
    "This usually means the authorization or client-token headers are missing "
    "or expired. Update SPOTIFY_AUTHORIZATION and SPOTIFY_CLIENT_TOKEN "
    "(or data/headers.json)."
)


@dataclass(frozen=True, slots=True)
class ResponseShape:
    """One known location of a field across upstream schema versions."""

    name: str
    path: tuple[str, ...]

    def resolve(self, payload: Any) -> Any:
        return dig(payload, self.path)


def probe(
    payload: Any,
    shapes: Sequence[ResponseShape],
    accept: Callable[[Any], bool],
) -> tuple[ResponseShape | None, Any]:
    """Return the first shape whose resolved value satisfies ``accept``."""

    for shape in shapes:
        value = shape.resolve(payload)
        if accept(value):
            return shape, value
    return None, None


AVERAGE_RATING_SHAPES: tuple[ResponseShape, ...] = (
    ResponseShape("averageRating", ("rating", "averageRating", "average")),
    ResponseShape("flatRating", ("rating", "average")),
)

TOTAL_RATINGS_SHAPES: tuple[ResponseShape, ...] = (
    ResponseShape("averageRating", ("rating", "averageRating", "totalRatings")),
    ResponseShape("flatRating", ("rating", "totalRatings")),
)

SEARCH_RESULT_SHAPES: tuple[ResponseShape, ...] = (
    ResponseShape("searchV2.podcasts", ("data", "searchV2", "podcasts", "items")),
    ResponseShape(
        "searchV2.podcastsAndEpisodes",
        ("data", "searchV2", "podcastsAndEpisodes", "items"),
    ),
    ResponseShape("searchV2.shows", ("data", "searchV2", "shows", "items")),
    ResponseShape("searchV2.topResultsV2", ("data", "searchV2", "topResultsV2", "itemsV2")),
    ResponseShape("searchV2.topResults", ("data", "searchV2", "topResults", "items")),
    ResponseShape("search.podcasts", ("data", "search", "podcasts", "items")),
    ResponseShape("search.shows", ("data", "search", "shows", "items")),
    ResponseShape("searchV2.podcasts.flat", ("data", "searchV2", "podcasts")),
)


def assert_no_graphql_errors(payload: Any, context: str) -> None:
    """Raise :class:`AuthError` or :class:`GenericError` for GraphQL ``errors``."""

    errors = payload.get("errors") if isinstance(payload, dict) else None
    if not isinstance(errors, list) or not errors:
        return

    messages = [
        clean_text(error.get("message")) if isinstance(error, dict) else ""
        for error in errors
    ]
    message = "; ".join(text for text in messages if text)

    if AUTH_ERROR_MARKER in message.lower():
        raise AuthError(
            f"Spotify GraphQL error while fetching {context}: {message}. "
            f"{AUTH_REMEDIATION_HINT}"
        )
    if message:
        raise GenericError(f"Spotify GraphQL error while fetching {context}: {message}")
    raise GenericError(f"Spotify API returned an error response while fetching {context}.")


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_rate(value: Any) -> str:
    if not is_number(value):
        return ""
    try:
        scaled = float(value) * 10
    except OverflowError:
        return ""
    if not math.isfinite(scaled):
        return ""
    return f"{math.floor(scaled) / 10:.1f}"


def _format_reviews(value: Any) -> str:
    if is_number(value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, str):
        return value
    return ""


def parse_show_profile(payload: Any) -> ShowProfile | None:
    """Return the show's profile, or ``None`` when name or publisher is missing."""

    assert_no_graphql_errors(payload, "show metadata")

    podcast = dig(payload, ("data", "podcastUnionV2"))
    if not isinstance(podcast, dict):
        return None

    show_name = clean_text(podcast.get("name"))
    host_name = clean_text(dig(podcast, ("publisher", "name")))
    if not show_name or not host_name:
        return None

    topics = dig(podcast, ("topics", "items"))
    category = ""
    if isinstance(topics, list):
        titles = [
            clean_text(topic.get("title")) if isinstance(topic, dict) else ""
            for topic in topics
        ]
        category = ", ".join(title for title in titles if title)

    _, average = probe(podcast, AVERAGE_RATING_SHAPES, _is_numeric)
    _, total = probe(podcast, TOTAL_RATINGS_SHAPES, lambda value: value is not None)

    return ShowProfile(
        show_name=show_name,
        host_name=host_name,
        about=clean_text(podcast.get("description")),
        rate=_format_rate(average),
        reviews=_format_reviews(total),
        category=category,
    )


def extract_episode_uris(payload: Any) -> list[str]:
    """Return episode URIs from the show response in upstream order."""

    episodes = dig(payload, ("data", "podcastUnionV2", "episodesV2", "items"))
    if not isinstance(episodes, list):
        return []

    uris = [clean_text(dig(episode, ("entity", "data", "uri"))) for episode in episodes]
    return [uri for uri in uris if uri]


def parse_episode_description(payload: Any) -> str:
    assert_no_graphql_errors(payload, "episode metadata")
    return clean_text(dig(payload, ("data", "episodeUnionV2", "htmlDescription")))


def _unwrap_search_item(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    inner = item.get("data")
    return inner if isinstance(inner, dict) else item


def _author_name(data: dict[str, Any]) -> str:
    publisher = data.get("publisher")
    if isinstance(publisher, dict):
        return clean_text(publisher.get("name"))
    return clean_text(publisher)


def extract_search_results(
    payload: Any,
    query: str,
    *,
    base_url: str = DEFAULT_WEB_URL,
) -> list[SearchResult]:
    """Return search hits from the first known result array in ``payload``.

    An empty array still wins over later shapes.
    """

    assert_no_graphql_errors(payload, f'search results for "{query}"')

    shape, items = probe(
        payload, SEARCH_RESULT_SHAPES, lambda value: isinstance(value, list)
    )
    if shape is None:
        logger.debug("No known search result shape matched for %r", query)
        return []

    results: list[SearchResult] = []
    for item in items:
        data = _unwrap_search_item(item)
        if data is None:
            continue
        url = identifier_to_url(data.get("uri"), base_url)
        if not url:
            continue
        results.append(
            SearchResult(
                author_name=_author_name(data),
                profile_title=clean_text(data.get("name")),
                query=query,
                url=url,
            )
        )
    return results


def parse(kind: OperationKind, payload: Any, *, query: str = "") -> Any:
    """Parse ``payload`` according to ``kind``."""

    if kind is OperationKind.SHOW:
        return parse_show_profile(payload)
    if kind is OperationKind.EPISODE:
        return parse_episode_description(payload)
    if kind is OperationKind.SEARCH:
        return extract_search_results(payload, query)
    raise ValueError(f"Unsupported operation kind: {kind!r}")
