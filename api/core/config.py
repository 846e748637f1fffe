"""Application configuration using pydantic-settings."""

from functools import cached_property, lru_cache
from typing import Literal, Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SECONDS_PER_DAY = 60 * 60 * 24


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Public base URL, used to build frame image and button targets
    app_url: str = "http://localhost:8000"

    # Key-value store backend
    # "redis" for any deployment, "memory" for local development and tests
    store_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    store_timeout_seconds: float = 5.0

    # Read-through cache in front of the store. 0 disables it.
    # Cache is per-worker/replica, reads may be up to cache_ttl_seconds stale
    cache_ttl_seconds: int = 0
    cache_max_size: int = 1000

    # Key expirations
    log_ttl_days: int = 365
    user_ttl_days: int = 365
    tip_ttl_days: int = 30
    farcaster_link_ttl_days: int = 365
    access_grant_days: int = 30

    # Calendar-day boundary used for streaks (IANA zone name)
    streak_timezone: str = "UTC"

    # Gemini tip generation; falls back to the built-in catalog when disabled
    google_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    tip_generation_enabled: bool = False
    tip_generation_timeout_seconds: float = 30.0

    # Simulated payment gateway
    payment_success_rate: float = 0.9
    payment_delay_seconds: float = 2.0

    # Use "redis://host:port" in production for distributed rate limiting
    # memory:// only works for single-instance deployments
    ratelimit_storage_uri: str = "memory://"

    # Feature flags: production defaults
    # Set DEBUG=true in .env for local development
    debug: bool = False  # Enables docs, allows the memory store
    enable_docs: bool = False  # Swagger UI at /docs

    @model_validator(mode="after")
    def validate_config(self) -> Self:
        try:
            ZoneInfo(self.streak_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(
                f"STREAK_TIMEZONE '{self.streak_timezone}' is not a valid IANA zone"
            ) from e

        if not 0.0 <= self.payment_success_rate <= 1.0:
            raise ValueError("PAYMENT_SUCCESS_RATE must be between 0 and 1")

        if self.store_backend == "redis" and not self.redis_url:
            raise ValueError("REDIS_URL must be set when STORE_BACKEND=redis")

        # In production (debug=False), data must survive restarts
        if not self.debug and self.store_backend == "memory":
            raise ValueError(
                "STORE_BACKEND=memory loses all data on restart. "
                "Set DEBUG=true to allow it in development."
            )
        return self

    @cached_property
    def streak_tz(self) -> ZoneInfo:
        return ZoneInfo(self.streak_timezone)

    @property
    def use_tip_generation(self) -> bool:
        """When True, tips come from Gemini instead of the fallback catalog."""
        return bool(self.tip_generation_enabled and self.google_api_key)

    @property
    def log_ttl_seconds(self) -> int:
        return self.log_ttl_days * SECONDS_PER_DAY

    @property
    def user_ttl_seconds(self) -> int:
        return self.user_ttl_days * SECONDS_PER_DAY

    @property
    def tip_ttl_seconds(self) -> int:
        return self.tip_ttl_days * SECONDS_PER_DAY

    @property
    def farcaster_link_ttl_seconds(self) -> int:
        return self.farcaster_link_ttl_days * SECONDS_PER_DAY


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this in tests to reset settings between test cases.
    After clearing, the next get_settings() call will create
    a fresh Settings instance with current environment variables.

    Example:
        def test_something(monkeypatch):
            monkeypatch.setenv("STREAK_TIMEZONE", "Europe/Berlin")
            clear_settings_cache()
            settings = get_settings()  # Fresh instance
    """
    get_settings.cache_clear()
