"""canonsync configuration settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from canonsync_common.models.titles import FuzzyMatchConfig


class Settings(BaseSettings):
    """Scrape pipeline settings with validation and type safety."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CANONSYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # FUZZY TITLE MATCHING
    # ============================================================================

    fuzzy_threshold: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Minimum adjusted score for a title match to be accepted",
    )
    fuzzy_candidate_limit: int = Field(
        default=5, ge=1, description="Number of top candidates scored per pass"
    )
    fuzzy_prefer_official: bool = Field(
        default=True,
        description="Boost official/primary titles over synonyms and short titles",
    )

    # ============================================================================
    # ANIDB HTTP API
    # ============================================================================

    anidb_base_url: str = Field(
        default="http://api.anidb.net:9001/httpapi",
        description="AniDB HTTP API endpoint URL",
    )
    anidb_client_name: str | None = Field(
        default=None, description="Registered AniDB client identifier"
    )
    anidb_client_version: str | None = Field(
        default=None, description="Registered AniDB client version"
    )
    anidb_protocol_version: str = Field(
        default="1", description="AniDB HTTP API protocol version"
    )
    anidb_min_request_interval: float = Field(
        default=2.0, description="Minimum seconds between AniDB requests"
    )
    anidb_max_request_interval: float = Field(
        default=10.0, description="Upper bound for the adaptive request interval"
    )
    anidb_error_cooldown_base: float = Field(
        default=5.0, description="Base cooldown in seconds after a failed request"
    )
    anidb_max_retries: int = Field(
        default=3, ge=0, description="Retry attempts for failed AniDB requests"
    )
    anidb_circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Consecutive failures before the circuit opens"
    )
    anidb_circuit_breaker_timeout: float = Field(
        default=300.0, description="Seconds the circuit stays open before probing"
    )

    # ============================================================================
    # ANIDB TITLE DUMP
    # ============================================================================

    title_dump_url: str = Field(
        default="http://anidb.net/api/anime-titles.dat.gz",
        description="Download URL of the AniDB anime title dump",
    )
    title_dump_path: str = Field(
        default="data/anime-titles.dat", description="Local path of the title dump"
    )
    title_dump_meta_path: str = Field(
        default="data/anime-titles.meta.json",
        description="Local path of the title dump metadata record",
    )
    title_dump_refresh_hours: float = Field(
        default=24.0,
        description="Minimum hours between dump downloads (AniDB allows one per day)",
    )

    # ============================================================================
    # HTTP TRANSPORT
    # ============================================================================

    http_user_agent: str = Field(
        default="canonsync/1.0", description="User-Agent for outbound requests"
    )
    http_total_timeout: float = Field(
        default=60.0, description="Total timeout per HTTP request in seconds"
    )
    http_connect_timeout: float = Field(
        default=30.0, description="Connect timeout per HTTP request in seconds"
    )

    # ============================================================================
    # LOGGING
    # ============================================================================

    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("title_dump_refresh_hours")
    @classmethod
    def validate_refresh_hours(cls, v: float) -> float:
        """Refuse refresh windows shorter than AniDB's one-download-per-day rule."""
        if v < 24.0:
            raise ValueError("title dump refresh interval must be at least 24 hours")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {sorted(valid_levels)}")
        return v.upper()

    def fuzzy_match_config(self) -> FuzzyMatchConfig:
        """Build the matcher configuration from the fuzzy_* settings."""
        return FuzzyMatchConfig(
            threshold=self.fuzzy_threshold,
            candidate_limit=self.fuzzy_candidate_limit,
            prefer_official=self.fuzzy_prefer_official,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
