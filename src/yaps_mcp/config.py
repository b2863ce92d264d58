"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_TRACKED_ACCOUNTS = [
    "VitalikButerin",
    "saylor",
    "elonmusk",
    "cz_binance",
    "balajis",
    "SBF_FTX",
    "cdixon",
    "aantonop",
    "brian_armstrong",
    "tyler",
    "cameron",
    "gabusch",
    "CryptoHayes",
    "Excellion",
    "SatoshiLite",
    "APompliano",
    "CharlieShrem",
    "rogerkver",
    "adam3us",
    "cryptograffiti",
]


class Settings(BaseSettings):
    """Server settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream
    yaps_api_endpoint: str = Field(
        default="https://api.kaito.ai/api/v1/yaps",
        description="Kaito YAPS API URL",
    )
    upstream_timeout_seconds: float = Field(default=30.0, gt=0, description="Upstream read timeout")

    # Server
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
    )
    host: str = Field(default="0.0.0.0", description="HTTP transport bind address")
    port: int = Field(default=3000, description="HTTP transport port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Cache
    cache_backend: Literal["auto", "redis", "memory"] = Field(
        default="auto",
        description="auto uses Redis when REDIS_URI is set, memory otherwise",
    )
    redis_uri: Optional[str] = Field(default=None, description="Redis connection string")
    yaps_cache_ttl: int = Field(default=300, gt=0, description="Score and comparison TTL in seconds")
    leaderboard_cache_ttl: int = Field(default=3600, gt=0, description="Leaderboard TTL in seconds")
    cache_recheck_seconds: float = Field(default=30.0, ge=0, description="Wait before retrying a failed cache")
    redis_connect_timeout: float = Field(default=2.0, gt=0)
    redis_retries: int = Field(default=2, ge=0)

    # Rate limiting
    rate_limit_max_requests: int = Field(default=100, gt=0)
    rate_limit_window_minutes: int = Field(default=5, gt=0)

    # Leaderboard
    tracked_accounts: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_TRACKED_ACCOUNTS),
        description="Comma-separated handles ranked by the leaderboard, in fetch order",
    )
    leaderboard_request_delay: float = Field(default=0.1, ge=0, description="Seconds between leaderboard fetches")
    leaderboard_refresh_hours: float = Field(default=0, ge=0, description="Background rebuild interval, 0 disables")

    @field_validator("tracked_accounts", mode="before")
    @classmethod
    def parse_accounts(cls, v):
        """Parse comma-separated handles into a list."""
        if isinstance(v, str):
            return [handle.strip() for handle in v.split(",") if handle.strip()]
        return v

    @model_validator(mode="after")
    def check_backend(self) -> "Settings":
        if self.cache_backend == "redis" and not self.redis_uri:
            raise ValueError("CACHE_BACKEND=redis requires REDIS_URI")
        return self

    @property
    def use_redis(self) -> bool:
        if self.cache_backend == "memory":
            return False
        return bool(self.redis_uri)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
