"""Pydantic models describing scraped records."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShowProfile(BaseModel):
    """Flattened show metadata ready to be persisted."""

    model_config = ConfigDict(frozen=True)

    show_name: str = Field(min_length=1)
    host_name: str = Field(min_length=1)
    about: str = ""
    rate: str = ""
    reviews: str = ""
    category: str = ""
    links: str = ""
    url: str = ""
    search_id: str | None = None
    episode_description: str | None = None

    def to_row(self) -> dict[str, object]:
        """Return column values for the ``profiles`` table."""

        return {
            "show_name": self.show_name,
            "host_name": self.host_name,
            "about": self.about,
            "rate": self.rate,
            "reviews": self.reviews,
            "url": self.url,
            "links": self.links,
            "category": self.category,
            "search_id": self.search_id or None,
            "episode_description": self.episode_description or None,
        }


class SearchResult(BaseModel):
    """A single show (or episode) surfaced by a search query."""

    model_config = ConfigDict(frozen=True)

    author_name: str = ""
    profile_title: str = ""
    query: str
    url: str = Field(min_length=1)
    search_id: str | None = None

    def to_row(self) -> dict[str, object]:
        return {
            "author_name": self.author_name,
            "profile_title": self.profile_title,
            "query": self.query,
            "url": self.url,
            "search_id": self.search_id,
        }


class PendingItem(BaseModel):
    """A unit of work: a profile URL or a search query plus its auxiliary key."""

    value: str
    aux_key: str | None = None

    @field_validator("aux_key", mode="before")
    @classmethod
    def _stringify_aux_key(cls, value: object) -> str | None:
        """Accept numeric keys from the database and blank them out when empty."""

        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                return None
            return str(int(value)) if value.is_integer() else str(value)
        if isinstance(value, str):
            return value.strip() or None
        return None
