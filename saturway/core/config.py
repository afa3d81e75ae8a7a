"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Saturway Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://saturway@localhost:5432/saturway"

    # Auth
    jwt_secret: str = "change-me-in-production-please-32-chars-min"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7
    telegram_bot_token: str = ""
    telegram_auth_max_age_s: int = 24 * 60 * 60

    # AI providers
    ai_default_provider: str = "claude"
    ai_fallback_provider: str = "openai"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-3-5-haiku-20241022"
    anthropic_max_tokens: int = 2048
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 2048
    ai_request_timeout_s: float = 30.0
    ai_cache_ttl_s: int = 3600

    # Cache
    cache_backend: str = "memory"
    cache_max_entries: int = 2048
    redis_url: str = "redis://localhost:6379/0"

    # Business limits
    default_page_size: int = 20
    max_page_size: int = 100
    max_task_title_length: int = 500
    max_task_description_length: int = 5000
    mood_log_retention_days: int = 90
    habit_default_target_days: int = 40

    # Observability
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "saturway"

    # Maintenance worker
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    retention_job_hour: int = 3
    retention_job_minute: int = 0
    jobs_run_on_startup: bool = False

    @field_validator("jwt_secret")
    @classmethod
    def _secret_length(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters long")
        return value

    @field_validator("ai_default_provider", "ai_fallback_provider", "cache_backend")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
