"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Empty metamap_webhook_secret disables webhook signature checks (local dev only)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://kyc:kyc@db:5432/kyc"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # MetaMap (identity verification provider)
    metamap_base_url: str = "https://api.prod.metamap.com"
    metamap_client_id: str = "metamap-client-placeholder"
    metamap_client_secret: str = "metamap-secret-placeholder"
    metamap_flow_id: str = "metamap-flow-placeholder"
    metamap_webhook_secret: str = ""
    metamap_timeout_seconds: int = 30
    metamap_max_retries: int = 3
    metamap_base_delay_ms: int = 500
    metamap_max_delay_ms: int = 8_000

    # Onboarding
    onboarding_max_attempts: int = 3

    # CORS (Vite dev server by default)
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "emoji"
    http_log_enabled: bool = True
    http_log_skip_paths: list[str] = ["/api/v1/health/"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
