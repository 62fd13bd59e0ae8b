"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="podscout", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    spotify_api_url: HttpUrl = Field(
        default="https://api-partner.spotify.com/pathfinder/v2/query",
        alias="SPOTIFY_API_URL",
    )
    spotify_web_url: HttpUrl = Field(
        default="https://open.spotify.com", alias="SPOTIFY_WEB_URL"
    )
    spotify_authorization: str | None = Field(
        default=None, alias="SPOTIFY_AUTHORIZATION"
    )
    spotify_client_token: str | None = Field(
        default=None, alias="SPOTIFY_CLIENT_TOKEN"
    )
    user_agent: str | None = Field(default=None, alias="USER_AGENT")
    show_metadata_hash: str | None = Field(
        default=None, alias="SPOTIFY_SHOW_METADATA_HASH"
    )
    search_hash: str | None = Field(default=None, alias="SPOTIFY_SEARCH_HASH")

    data_dir: Path = Field(default=Path("data"), alias="DATA_DIR")
    headers_file: Path | None = Field(default=None, alias="HEADERS_FILE")

    use_scrape_ninja: bool = Field(default=False, alias="USE_SCRAPE_NINJA")
    scrape_ninja_api_key: str | None = Field(
        default=None, alias="SCRAPE_NINJA_API_KEY"
    )
    scrape_ninja_endpoint: HttpUrl = Field(
        default="https://scrapeninja.p.rapidapi.com/scrape",
        alias="SCRAPE_NINJA_ENDPOINT",
    )
    scrape_ninja_host: str = Field(
        default="scrapeninja.p.rapidapi.com", alias="SCRAPE_NINJA_HOST"
    )

    db_host: str = Field(default="localhost", alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT", ge=1, le=65_535)
    db_user: str = Field(default="postgres", alias="DB_USER")
    db_password: str | None = Field(default=None, alias="DB_PASSWORD")
    db_name: str = Field(default="scrapers", alias="DB_NAME")
    db_schema: str | None = Field(default=None, alias="DB_SCHEMA")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    pending_profiles_sql: str | None = Field(
        default=None, alias="PENDING_PROFILES_SQL"
    )

    request_timeout_seconds: float = Field(
        default=30.0, alias="REQUEST_TIMEOUT", gt=0, le=300
    )
    pipeline_concurrency: int = Field(
        default=1, alias="PIPELINE_CONCURRENCY", ge=1, le=8
    )
    search_limit: int = Field(default=10, alias="SEARCH_LIMIT", ge=1, le=50)

    @field_validator(
        "spotify_authorization",
        "spotify_client_token",
        "user_agent",
        "show_metadata_hash",
        "search_hash",
        "scrape_ninja_api_key",
        "db_schema",
        "database_url",
        "pending_profiles_sql",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        """Treat empty environment values as unset."""

        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @model_validator(mode="after")
    def _require_relay_key(self) -> "Settings":
        """The relay transport cannot authenticate without an API key."""

        if self.use_scrape_ninja and not self.scrape_ninja_api_key:
            raise ValueError(
                "SCRAPE_NINJA_API_KEY is required when USE_SCRAPE_NINJA is enabled"
            )
        return self

    @property
    def headers_path(self) -> Path:
        """Return the location of the optional header overrides file."""

        return self.headers_file or self.data_dir / "headers.json"

    @property
    def database_dsn(self) -> str:
        """Return the SQLAlchemy URL, composing it from DB_* values if needed."""

        if self.database_url:
            return self.database_url
        url = URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", frozen=True, extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
