"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Thresholds are validated at load time (similarity in [0, 1], limits > 0)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://accent:accent@db:5432/accentvote"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Rate limits (sliding window)
    vote_rate_limit: int = Field(60, gt=0)
    vote_rate_window_minutes: int = Field(60, gt=0)
    retract_rate_limit: int = Field(30, gt=0)
    retract_rate_window_minutes: int = Field(60, gt=0)

    # Tabulation
    retraction_window_hours: int = Field(24, gt=0)
    tabulation_timeout_seconds: float = Field(10.0, gt=0)

    # Analytics
    cluster_similarity_threshold: float = Field(0.7, ge=0.0, le=1.0)
    boundary_difference_threshold: float = Field(0.5, ge=0.0, le=1.0)
    boundary_limit: int = Field(10, gt=0)

    # API
    cors_origins: list[str] = ["http://localhost:3000"]
    voter_key_header: str = "X-Voter-Key"
    # set when behind a trusted proxy, e.g. "X-Forwarded-For"
    client_address_header: str | None = None

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
