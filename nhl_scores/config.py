"""
Typed settings for the NHL scores pipeline.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. A local .env file at the repository root
is honoured for development; in containers the variables are passed directly.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class FeedConfig(BaseModel):
    stats_base_url: str = Field(default="https://api.nhle.com/stats/rest/en")
    web_base_url: str = Field(default="https://api-web.nhle.com/v1")
    logo_url_template: str = Field(
        default="https://assets.nhle.com/logos/nhl/svg/{abbreviation}_light.svg"
    )
    request_timeout_seconds: int = 20
    user_agent: str = "nhl-scores-ingest/1.0"
    # Bulk endpoints only: wait on 429 when no Retry-After header is sent
    rate_limit_wait_seconds: int = 60
    max_attempts: int = 3


class RefreshConfig(BaseModel):
    # Per-game throttle between upstream score refreshes
    min_interval_seconds: float = 2.0
    # A lock older than this is assumed to belong to a crashed refresh
    lock_stale_after_seconds: float = 30.0


class IngestConfig(BaseModel):
    batch_size: int = Field(default=500, le=500)
    batch_pause_seconds: float = 0.5
    timezone: str = "America/New_York"


class StatsConfig(BaseModel):
    recent_games_limit: int = 5


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Nested sections can be overridden with double-underscore syntax,
    e.g. REFRESH_CONFIG__MIN_INTERVAL_SECONDS=5.
    """
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        env_nested_delimiter="__",
        extra="allow",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_async_to_sync(cls, v: str) -> str:
        """
        Convert asyncpg URLs to psycopg for synchronous SQLAlchemy.

        Keeps a single DATABASE_URL usable by async services sharing the
        same database.
        """
        if isinstance(v, str) and "asyncpg" in v:
            return v.replace("asyncpg", "psycopg")
        return v

    redis_url: str = Field("redis://localhost:6379/3", alias="REDIS_URL")
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    sql_echo: bool = Field(False, alias="SQL_ECHO")
    feed_config: FeedConfig = Field(default_factory=FeedConfig)
    refresh_config: RefreshConfig = Field(default_factory=RefreshConfig)
    ingest_config: IngestConfig = Field(default_factory=IngestConfig)
    stats_config: StatsConfig = Field(default_factory=StatsConfig)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Environment variables don't change during runtime, so the settings
    are parsed once per process.
    """
    validate_env()
    return Settings()


settings = get_settings()
