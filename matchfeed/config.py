"""
MatchFeed: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.

The discovery engine itself never reads ``Settings`` directly: it receives an
immutable :class:`DiscoveryConfig` built by :meth:`Settings.discovery_config`,
so tests can construct the engine with overridden limits.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class DiscoveryConfig:
    """Tunables for the discovery pipeline."""

    default_page_size: int = 50
    max_page_size: int = 100
    candidate_scan_limit: int = 2000
    earth_radius_km: float = 6371.0
    distance_decimals: int = 1
    strict_filter_tokens: bool = False
    distance_filter_excludes_unlocated: bool = True
    exclude_users_who_passed_me: bool = True
    exclude_unmatched_history: bool = True
    nearby_radius_km: float = 100.0


class Settings(BaseSettings):
    """Central configuration for the MatchFeed discovery service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database – Cloud SQL via Unix socket or private IP
    # ------------------------------------------------------------------ #
    DATABASE_URL: str
    DB_USER: str = "matchfeed_user"
    DB_PASSWORD: str = ""
    DB_NAME: str = "matchfeed"
    CLOUD_SQL_INSTANCE_CONNECTION: str = ""
    CLOUD_SQL_USE_UNIX_SOCKET: bool = True

    # ------------------------------------------------------------------ #
    # Google Cloud Storage – profile media
    # ------------------------------------------------------------------ #
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""
    SIGNED_URL_EXPIRY_MINUTES: int = 60

    # ------------------------------------------------------------------ #
    # Discovery engine
    # ------------------------------------------------------------------ #
    DISCOVERY_DEFAULT_PAGE_SIZE: int = 50
    DISCOVERY_MAX_PAGE_SIZE: int = 100
    DISCOVERY_CANDIDATE_SCAN_LIMIT: int = 2000
    EARTH_RADIUS_KM: float = 6371.0
    DISTANCE_DECIMALS: int = 1
    STRICT_FILTER_TOKENS: bool = False
    DISTANCE_FILTER_EXCLUDES_UNLOCATED: bool = True
    EXCLUDE_USERS_WHO_PASSED_ME: bool = True
    EXCLUDE_UNMATCHED_HISTORY: bool = True
    DISCOVERY_NEARBY_RADIUS_KM: float = 100.0

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def discovery_config(self) -> DiscoveryConfig:
        return DiscoveryConfig(
            default_page_size=self.DISCOVERY_DEFAULT_PAGE_SIZE,
            max_page_size=self.DISCOVERY_MAX_PAGE_SIZE,
            candidate_scan_limit=self.DISCOVERY_CANDIDATE_SCAN_LIMIT,
            earth_radius_km=self.EARTH_RADIUS_KM,
            distance_decimals=self.DISTANCE_DECIMALS,
            strict_filter_tokens=self.STRICT_FILTER_TOKENS,
            distance_filter_excludes_unlocated=self.DISTANCE_FILTER_EXCLUDES_UNLOCATED,
            exclude_users_who_passed_me=self.EXCLUDE_USERS_WHO_PASSED_ME,
            exclude_unmatched_history=self.EXCLUDE_UNMATCHED_HISTORY,
            nearby_radius_km=self.DISCOVERY_NEARBY_RADIUS_KM,
        )

    @field_validator(
        "DISCOVERY_DEFAULT_PAGE_SIZE",
        "DISCOVERY_MAX_PAGE_SIZE",
        "DISCOVERY_CANDIDATE_SCAN_LIMIT",
    )
    @classmethod
    def _must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Limit must be a positive integer, got {v}")
        return v

    @field_validator("DISTANCE_DECIMALS")
    @classmethod
    def _decimals_in_range(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError(f"DISTANCE_DECIMALS must be between 0 and 6, got {v}")
        return v

    @field_validator("DISCOVERY_NEARBY_RADIUS_KM")
    @classmethod
    def _radius_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"DISCOVERY_NEARBY_RADIUS_KM must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def _default_page_within_max(self) -> "Settings":
        if self.DISCOVERY_DEFAULT_PAGE_SIZE > self.DISCOVERY_MAX_PAGE_SIZE:
            raise ValueError(
                "DISCOVERY_DEFAULT_PAGE_SIZE cannot exceed DISCOVERY_MAX_PAGE_SIZE"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from matchfeed.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
